"""생산 리포트 핵심 로직"""
