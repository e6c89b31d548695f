"""리포트 렌더링"""
