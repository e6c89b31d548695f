"""리포트 페이지를 PDF로 그리는 모듈 (Pillow + qrcode)"""

import io
import json
import os
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError
import qrcode

from core.grouping import (
    DEFAULT_FALLBACK_OPERATION,
    group_by_article_name,
    group_by_operation,
    iter_by_article_name,
    iter_by_operation,
)
from core.models import ArticleCatalog, Operation, ReportPageDescriptor
from utils.exceptions import RenderError
from utils.file_handler import ensure_directory_exists


RENDER_CONFIG = {
    'bg_color': "white", 'text_color': "black", 'muted_color': "#555555",
    'accent_colors': {'total': "#2E86C1", 'audited': "#28B463", 'packaged': "#8E44AD"},
    'padding': 60,
    'font_sizes': {'title': 40, 'subtitle': 26, 'header': 24, 'body': 18, 'small': 15, 'kpi': 36},
    'qr_code': {'size': 110, 'box_size': 4, 'border': 2},
    'layout': {
        'line_height': 24, 'section_gap': 18, 'logo_width': 120,
        'kpi_height': 90, 'chart_height': 200,
    },
}


class PdfReportRenderer:
    """ReportPageDescriptor 목록을 A4 비율 이미지로 그린 뒤 한 PDF로 저장합니다."""

    def __init__(self, catalog: ArticleCatalog, font_path: Optional[str] = None,
                 page_size: Tuple[int, int] = (1240, 1754), qr_enabled: bool = True,
                 fallback_operation: Operation = DEFAULT_FALLBACK_OPERATION):
        self.catalog = catalog
        self.font_path = font_path
        self.page_size = tuple(page_size)
        self.qr_enabled = qr_enabled
        self.fallback_operation = fallback_operation
        self.fonts = self._load_fonts()

    def _load_fonts(self) -> Dict[str, ImageFont.ImageFont]:
        fonts = {}
        if self.font_path:
            try:
                for name, size in RENDER_CONFIG['font_sizes'].items():
                    fonts[name] = ImageFont.truetype(self.font_path, size)
                return fonts
            except IOError:
                print(f"폰트를 찾을 수 없습니다: {self.font_path}. 기본 폰트로 생성합니다.")
        for name in RENDER_CONFIG['font_sizes']:
            fonts[name] = ImageFont.load_default()
        return fonts

    # -----------------------------------------------------------------
    # 공개 API
    # -----------------------------------------------------------------

    def render(self, pages: Sequence[ReportPageDescriptor], output_path: str) -> str:
        """모든 페이지를 그려 output_path에 PDF로 저장합니다."""
        if not pages:
            raise RenderError("렌더링할 페이지가 없습니다.")

        images = [self.render_page(page) for page in pages]
        ensure_directory_exists(os.path.dirname(os.path.abspath(output_path)))
        try:
            images[0].save(output_path, "PDF", resolution=150.0, save_all=True, append_images=images[1:])
        except (OSError, ValueError) as e:
            raise RenderError(f"PDF 저장 실패: {output_path} ({e})") from e
        return output_path

    def render_page(self, page: ReportPageDescriptor) -> Image.Image:
        W, H = self.page_size
        img = Image.new('RGB', (W, H), RENDER_CONFIG['bg_color'])
        draw = ImageDraw.Draw(img)

        if page.is_first_page:
            y = self._draw_header(img, draw, page)
            y = self._draw_kpis(draw, page, y)
            y = self._draw_operation_chart(draw, page, y)
        else:
            y = self._draw_continuation_header(draw, page)

        if page.packaged_records:
            y = self._draw_packaged_section(draw, page, y)
        if page.process_records:
            self._draw_process_section(draw, page, y)

        self._draw_footer(img, draw, page)
        return img

    # -----------------------------------------------------------------
    # 머리글
    # -----------------------------------------------------------------

    def _text(self, draw, xy, text, font='body', fill=None):
        draw.text(xy, text, font=self.fonts[font], fill=fill or RENDER_CONFIG['text_color'])

    def _load_logo(self, logo_reference: Optional[bytes]) -> Optional[Image.Image]:
        if not logo_reference:
            return None
        try:
            logo = Image.open(io.BytesIO(logo_reference))
            logo.load()
        except (UnidentifiedImageError, OSError) as e:
            print(f"로고 이미지 로드 실패: {e}")
            return None
        width = RENDER_CONFIG['layout']['logo_width']
        return logo.convert('RGBA').resize(
            (width, max(1, int(width * logo.height / logo.width))), Image.Resampling.LANCZOS)

    def _draw_header(self, img, draw, page: ReportPageDescriptor) -> int:
        W, _ = self.page_size
        pad = RENDER_CONFIG['padding']
        x = pad

        logo = self._load_logo(page.logo_reference)
        logo_bottom = pad
        if logo:
            img.paste(logo, (pad, pad), logo)
            x += logo.width + 20
            logo_bottom = pad + logo.height

        self._text(draw, (x, pad), "Shift Summary", 'title')
        self._text(draw, (x, pad + 52), f"Shift: {page.shift}", 'subtitle', RENDER_CONFIG['muted_color'])

        date_text = page.report_date.strftime('%B %d, %Y')
        date_w = draw.textlength(date_text, font=self.fonts['header'])
        self._text(draw, (W - pad - date_w, pad), date_text, 'header')
        if page.operator_name:
            operator_text = f"Prepared by: {page.operator_name}"
            operator_w = draw.textlength(operator_text, font=self.fonts['small'])
            self._text(draw, (W - pad - operator_w, pad + 36), operator_text, 'small')

        line_y = max(logo_bottom, pad + 90) + 10
        draw.line([(pad, line_y), (W - pad, line_y)], fill=RENDER_CONFIG['text_color'], width=2)
        return line_y + RENDER_CONFIG['layout']['section_gap']

    def _draw_continuation_header(self, draw, page: ReportPageDescriptor) -> int:
        pad = RENDER_CONFIG['padding']
        self._text(draw, (pad, pad), "Shift Summary (cont.)", 'subtitle')
        self._text(draw, (pad, pad + 36), page.report_date.strftime('%B %d, %Y'), 'small',
                   RENDER_CONFIG['muted_color'])
        return pad + 36 + 24 + RENDER_CONFIG['layout']['section_gap']

    def _draw_kpis(self, draw, page: ReportPageDescriptor, y: int) -> int:
        W, _ = self.page_size
        pad = RENDER_CONFIG['padding']
        colors = RENDER_CONFIG['accent_colors']
        height = RENDER_CONFIG['layout']['kpi_height']

        self._text(draw, (pad, y), "Daily Metrics", 'header')
        y += 34
        boxes = [
            ("Total Codes", page.total_records, colors['total']),
            ("Audited", page.total_audited, colors['audited']),
            ("Packaged", page.total_packaged, colors['packaged']),
        ]
        gap = 20
        box_w = (W - 2 * pad - gap * (len(boxes) - 1)) / len(boxes)
        for index, (title, value, color) in enumerate(boxes):
            left = pad + index * (box_w + gap)
            draw.rounded_rectangle([left, y, left + box_w, y + height], radius=12, outline=color, width=3)
            value_text = str(value)
            value_w = draw.textlength(value_text, font=self.fonts['kpi'])
            self._text(draw, (left + (box_w - value_w) / 2, y + 10), value_text, 'kpi', color)
            title_w = draw.textlength(title, font=self.fonts['small'])
            self._text(draw, (left + (box_w - title_w) / 2, y + height - 28), title, 'small')
        return y + height + RENDER_CONFIG['layout']['section_gap']

    def _draw_operation_chart(self, draw, page: ReportPageDescriptor, y: int) -> int:
        W, _ = self.page_size
        pad = RENDER_CONFIG['padding']
        chart_h = RENDER_CONFIG['layout']['chart_height']

        self._text(draw, (pad, y), "Distribution by Operation", 'header')
        y += 34
        distribution = page.operation_distribution
        if not distribution:
            return y + RENDER_CONFIG['layout']['section_gap']

        max_count = max((entry.total_count for entry in distribution), default=0) or 1
        slot_w = (W - 2 * pad) / len(distribution)
        bar_w = slot_w * 0.6
        base_y = y + chart_h - 30
        for index, entry in enumerate(distribution):
            left = pad + index * slot_w + (slot_w - bar_w) / 2
            bar_h = (chart_h - 60) * entry.total_count / max_count
            if bar_h:
                draw.rectangle([left, base_y - bar_h, left + bar_w, base_y],
                               fill=RENDER_CONFIG['accent_colors']['total'])
            count_text = str(entry.total_count)
            count_w = draw.textlength(count_text, font=self.fonts['small'])
            self._text(draw, (left + (bar_w - count_w) / 2, base_y - bar_h - 20), count_text, 'small',
                       RENDER_CONFIG['muted_color'])
            label_w = draw.textlength(entry.operation.value, font=self.fonts['small'])
            label_x = pad + index * slot_w + max(0, (slot_w - label_w) / 2)
            self._text(draw, (label_x, base_y + 6), entry.operation.value, 'small')
        draw.line([(pad, base_y), (W - pad, base_y)], fill=RENDER_CONFIG['text_color'], width=1)
        return y + chart_h + RENDER_CONFIG['layout']['section_gap']

    # -----------------------------------------------------------------
    # 본문
    # -----------------------------------------------------------------

    def _draw_packaged_section(self, draw, page: ReportPageDescriptor, y: int) -> int:
        W, _ = self.page_size
        pad = RENDER_CONFIG['padding']
        lh = RENDER_CONFIG['layout']['line_height']

        self._text(draw, (pad, y), "Packaged Codes (Finished)", 'header')
        y += 34
        groups = group_by_article_name(page.packaged_records, self.catalog)
        for name, records in iter_by_article_name(groups):
            self._text(draw, (pad, y), name, 'body')
            y += lh
            for index, record in enumerate(sorted(records, key=lambda r: r.code), start=1):
                self._text(draw, (pad + 20, y), f"{index}. {record.code}", 'small')
                y += lh
            self._text(draw, (pad + 20, y), f"Subtotal: {len(records)}", 'small', RENDER_CONFIG['muted_color'])
            y += lh

        total_text = f"Total packaged: {len(page.packaged_records)}"
        total_w = draw.textlength(total_text, font=self.fonts['small'])
        self._text(draw, (W - pad - total_w, y), total_text, 'small')
        return y + lh + RENDER_CONFIG['layout']['section_gap']

    def _draw_process_section(self, draw, page: ReportPageDescriptor, y: int) -> int:
        W, _ = self.page_size
        pad = RENDER_CONFIG['padding']
        lh = RENDER_CONFIG['layout']['line_height']
        muted = RENDER_CONFIG['muted_color']

        self._text(draw, (pad, y), "Codes in Process", 'header')
        y += 34
        by_operation = group_by_operation(page.process_records, self.fallback_operation)
        for operation, operation_records in iter_by_operation(by_operation):
            self._text(draw, (pad, y), operation.value, 'body')
            y += lh
            groups = group_by_article_name(operation_records, self.catalog)
            for name, records in iter_by_article_name(groups):
                self._text(draw, (pad + 10, y), f"- {name}", 'body')
                y += lh
                for record in sorted(records, key=lambda r: r.code):
                    self._text(draw, (pad + 20, y), self._process_line(record), 'small')
                    y += lh
                audited = [r for r in records if r.audited]
                self._text(draw, (pad + 20, y),
                           f"Subtotal: {len(records)} code(s) [{len(audited)} audited]", 'small', muted)
                y += lh
                if audited:
                    counted = sum(r.piece_count or 0 for r in audited)
                    expected = sum(self._expected_pieces(r) for r in records)
                    self._text(draw, (pad + 20, y), f"Audited: {counted} / Expected: {expected}", 'small', muted)
                    y += lh
            draw.line([(pad, y + 4), (W - pad, y + 4)], fill="#CCCCCC", width=1)
            y += lh // 2
        return y

    def _process_line(self, record) -> str:
        line = f"    {record.code}"
        if record.audited:
            line += "  (Audited)"
            if record.piece_count is not None:
                line += f"  {record.piece_count} pcs"
        return line

    def _expected_pieces(self, record) -> int:
        article = self.catalog.resolve(record)
        return (article.expected_piece_count or 0) if article else 0

    # -----------------------------------------------------------------
    # 바닥글
    # -----------------------------------------------------------------

    def _make_qr(self, page: ReportPageDescriptor) -> Image.Image:
        qr_config = RENDER_CONFIG['qr_code']
        qr_data = json.dumps({'date': page.report_date.isoformat(), 'page': page.page_number,
                              'total': page.total_pages})
        qr = qrcode.QRCode(version=1, error_correction=qrcode.constants.ERROR_CORRECT_L,
                           box_size=qr_config['box_size'], border=qr_config['border'])
        qr.add_data(qr_data)
        qr.make(fit=True)
        return qr.make_image(fill_color=RENDER_CONFIG['text_color'],
                             back_color=RENDER_CONFIG['bg_color']).resize((qr_config['size'], qr_config['size']))

    def _draw_footer(self, img, draw, page: ReportPageDescriptor):
        W, H = self.page_size
        pad = RENDER_CONFIG['padding']
        footer_y = H - pad - 20

        self._text(draw, (pad, footer_y), "Production report", 'small', RENDER_CONFIG['muted_color'])
        page_text = f"Page {page.page_number} of {page.total_pages}"
        page_w = draw.textlength(page_text, font=self.fonts['small'])
        text_right = W - pad
        if self.qr_enabled:
            qr_img = self._make_qr(page)
            img.paste(qr_img, (W - pad - qr_img.width, H - pad - qr_img.height))
            text_right -= qr_img.width + 20
        self._text(draw, (text_right - page_w, footer_y), page_text, 'small', RENDER_CONFIG['muted_color'])


def render_report_pdf(pages: List[ReportPageDescriptor], catalog: ArticleCatalog, output_path: str,
                      font_path: Optional[str] = None, qr_enabled: bool = True) -> str:
    return PdfReportRenderer(catalog, font_path=font_path, qr_enabled=qr_enabled).render(pages, output_path)
