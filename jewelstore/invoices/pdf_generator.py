"""
Invoice PDF generation with Pillow and python-barcode

The layout is computed in PDF points (A4 = 595 x 842) into a list of pages of
drawing operations, then each page is rasterised with Pillow and the pages are
saved as one PDF. Only the layout depends on the invoice data; rendering is
mechanical.
"""
import io
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from django.conf import settings
from PIL import Image, ImageDraw, ImageFont
import barcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter

logger = logging.getLogger(__name__)

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 50
ROW_HEIGHT = 40
ROW_LIMIT_Y = 680
TOTALS_Y = 700
RENDER_SCALE = 2  # pixels per point

DARK_GRAY = '#1F2937'
MEDIUM_GRAY = '#6B7280'
RULE_COLOR = '#E5E7EB'
TOTAL_RULE_COLOR = '#D1D5DB'

TABLE_COLUMNS = [
    # label, x, width, align
    ('ITEM DESCRIPTION', 60, 220, 'left'),
    ('UNIT PRICE', 320, 100, 'right'),
    ('QTY', 430, 50, 'center'),
    ('AMOUNT', 490, 50, 'right'),
]


def format_currency(amount):
    """``Rs. 12,34,567.50``: two decimals with Indian digit grouping"""
    value = Decimal(str(amount or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if value < 0 else ''
    whole, fraction = f"{abs(value):.2f}".split('.')
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ','.join(groups + [tail])
    return f"Rs. {sign}{whole}.{fraction}"


def format_date(value):
    """``19 October 2026``; missing or unparseable dates give ``N/A``"""
    if not value:
        return 'N/A'
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return 'N/A'
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return 'N/A'
    return f"{value.day} {value.strftime('%B')} {value.year}"


class InvoiceLayout:
    """Pages of drawing operations in point coordinates"""

    def __init__(self):
        self.pages = [[]]

    @property
    def page_count(self):
        return len(self.pages)

    def new_page(self):
        self.pages.append([])

    def text(self, x, y, value, size=10, bold=False, color=DARK_GRAY, width=None, align='left'):
        self.pages[-1].append({
            'op': 'text', 'x': x, 'y': y, 'text': str(value), 'size': size,
            'bold': bold, 'color': color, 'width': width, 'align': align,
        })

    def line(self, x1, y1, x2, y2, width=1, color=RULE_COLOR):
        self.pages[-1].append({'op': 'line', 'points': (x1, y1, x2, y2), 'width': width, 'color': color})

    def barcode(self, x, y, width, height, value):
        self.pages[-1].append({'op': 'barcode', 'x': x, 'y': y, 'width': width, 'height': height, 'value': value})

    def texts(self, page=None):
        """Text strings drawn on one page (or all pages)"""
        pages = self.pages if page is None else [self.pages[page]]
        return [op['text'] for ops in pages for op in ops if op['op'] == 'text']


def draw_table_header(layout, top):
    for label, x, width, align in TABLE_COLUMNS:
        layout.text(x, top + 10, label, size=11, bold=True, width=width, align=align)
    layout.line(MARGIN, top + 25, PAGE_WIDTH - 45, top + 25)


def draw_company_block(layout, company):
    layout.text(MARGIN, 50, company['name'], size=28, bold=True, width=PAGE_WIDTH - 2 * MARGIN, align='center')

    left_y = 90
    layout.text(MARGIN, left_y, 'FROM:', bold=True)
    left_y += 15
    lines = [company['name']] + list(company.get('address_lines') or [])
    if company.get('phone'):
        lines.append(f"Phone: {company['phone']}")
    if company.get('email'):
        lines.append(f"Email: {company['email']}")
    if company.get('gstin'):
        lines.append(f"GSTIN: {company['gstin']}")
    for index, value in enumerate(lines):
        layout.text(MARGIN, left_y + 13 * index, value, color=MEDIUM_GRAY)
    return left_y


def draw_invoice_details(layout, data):
    box_x, box_width = 350, 200
    entries = [
        ('Invoice Number:', data['invoice_number']),
        ('Invoice Date:', format_date(data.get('issue_date'))),
    ]
    if data.get('due_date'):
        entries.append(('Due Date:', format_date(data['due_date'])))
    if data.get('order_reference'):
        entries.append(('Order Ref:', data['order_reference']))

    y = 90
    for index, (label, value) in enumerate(entries):
        if index:
            y += 18
        layout.text(box_x, y, label, bold=True, width=box_width, align='right')
        y += 14
        layout.text(box_x, y, value, color=MEDIUM_GRAY, width=box_width, align='right')
    return y


def draw_bill_to(layout, bill_to, top):
    y = top
    layout.text(MARGIN, y, 'Bill To:', bold=True)
    if not bill_to:
        return y

    y += 18
    layout.text(MARGIN, y, bill_to.get('business_name') or bill_to.get('name') or '', size=12, bold=True)
    y += 16
    layout.text(MARGIN, y, bill_to.get('email') or '', color=MEDIUM_GRAY)

    lines = [bill_to.get('address_line1'), bill_to.get('address_line2')]
    locality = ', '.join(part for part in (bill_to.get('city'), bill_to.get('state'), bill_to.get('postal_code')) if part)
    lines.append(locality)
    if bill_to.get('gst_number'):
        lines.append(f"GST: {bill_to['gst_number']}")
    if bill_to.get('pan_number'):
        lines.append(f"PAN: {bill_to['pan_number']}")
    for value in lines:
        if value:
            y += 13
            layout.text(MARGIN, y, value, color=MEDIUM_GRAY)
    return y


def draw_items(layout, items, top):
    draw_table_header(layout, top)
    item_y = top + 35
    for item in items:
        if item_y + ROW_HEIGHT > ROW_LIMIT_Y:
            layout.new_page()
            item_y = MARGIN
            draw_table_header(layout, item_y)
            item_y += 35

        layout.text(60, item_y, item.get('name') or '-', size=11, bold=True, width=220)
        if item.get('sku'):
            layout.text(60, item_y + 15, f"SKU: {item['sku']}", size=9, color=MEDIUM_GRAY, width=220)
        layout.text(320, item_y + 10, format_currency(item.get('unit_price')), width=100, align='right')
        layout.text(430, item_y + 10, item.get('quantity') or 1, width=50, align='center')
        layout.text(490, item_y + 10, format_currency(item.get('total_price')), bold=True, width=50, align='right')
        layout.line(MARGIN, item_y + ROW_HEIGHT - 5, PAGE_WIDTH - 45, item_y + ROW_HEIGHT - 5, width=0.5)
        item_y += ROW_HEIGHT
    return item_y


def draw_totals(layout, data):
    box_x, box_width = 350, 200
    y = TOTALS_Y
    layout.text(box_x, y, f"Subtotal: {format_currency(data.get('subtotal_amount'))}", width=box_width, align='right')

    if Decimal(str(data.get('discount_amount') or 0)) > 0:
        y += 20
        layout.text(box_x, y, f"Discount: -{format_currency(data['discount_amount'])}", color=MEDIUM_GRAY, width=box_width, align='right')
    if Decimal(str(data.get('tax_amount') or 0)) > 0:
        y += 20
        layout.text(box_x, y, f"Tax (GST): {format_currency(data['tax_amount'])}", width=box_width, align='right')

    y += 20
    layout.line(box_x, y, box_x + box_width, y, color=TOTAL_RULE_COLOR)
    y += 15
    layout.text(box_x, y, f"TOTAL: {format_currency(data.get('total_amount'))}", size=12, bold=True, width=box_width, align='right')
    return y


def draw_notes(layout, data, totals_y):
    if not (data.get('notes') or data.get('terms')):
        return
    y = totals_y + 40
    if y > TOTALS_Y:
        layout.new_page()
        y = MARGIN
    for title, key in (('Notes:', 'notes'), ('Terms & Conditions:', 'terms')):
        if data.get(key):
            layout.text(MARGIN, y, title, size=11, bold=True)
            layout.text(MARGIN, y + 15, data[key], size=9, color=MEDIUM_GRAY, width=500)
            y += 50


def build_invoice_layout(data, company=None):
    """
    Lay out an invoice. ``data`` holds invoice_number, issue_date, due_date,
    order_reference, bill_to, items (name, sku, unit_price, quantity,
    total_price), amounts, notes and terms.
    """
    company = company or settings.INVOICE_COMPANY
    layout = InvoiceLayout()

    left_y = draw_company_block(layout, company)
    details_y = draw_invoice_details(layout, data)

    separator_y = max(left_y + 80, details_y + 20)
    layout.line(MARGIN, separator_y, PAGE_WIDTH - 45, separator_y)
    layout.barcode(350, separator_y + 20, 200, 40, data['invoice_number'])

    bill_to_y = draw_bill_to(layout, data.get('bill_to'), separator_y + 25)
    draw_items(layout, data.get('items') or [], max(bill_to_y + 30, 280))
    totals_y = draw_totals(layout, data)
    draw_notes(layout, data, totals_y)
    return layout


# Rendering
def load_font(size, bold=False):
    path = settings.INVOICE_BOLD_FONT_PATH if bold else settings.INVOICE_FONT_PATH
    try:
        return ImageFont.truetype(path, size)
    except (OSError, IOError):
        try:
            return ImageFont.truetype('arialbd.ttf' if bold else 'arial.ttf', size)
        except (OSError, IOError):
            return ImageFont.load_default()


def wrap_text(draw, text, font, max_width):
    lines = []
    for paragraph in text.splitlines() or ['']:
        current = ''
        for word in paragraph.split(' '):
            candidate = f"{current} {word}".strip()
            if current and draw.textlength(candidate, font=font) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def render_barcode(value, width, height):
    code128 = barcode.get_barcode_class('code128')
    image = code128(value, writer=ImageWriter()).render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 10.0,
        'quiet_zone': 1.0,
        'background': 'white',
        'foreground': 'black',
    })
    return image.resize((width, height), Image.Resampling.BILINEAR)


def render_page(operations, fonts):
    scale = RENDER_SCALE
    image = Image.new('RGB', (PAGE_WIDTH * scale, PAGE_HEIGHT * scale), color='white')
    draw = ImageDraw.Draw(image)

    for op in operations:
        if op['op'] == 'line':
            x1, y1, x2, y2 = (coord * scale for coord in op['points'])
            draw.line((x1, y1, x2, y2), fill=op['color'], width=max(int(op['width'] * scale), 1))

        elif op['op'] == 'barcode':
            width, height = op['width'] * scale, op['height'] * scale
            try:
                image.paste(render_barcode(op['value'], width, height), (op['x'] * scale, op['y'] * scale))
            except (BarcodeError, OSError, ValueError) as e:
                logger.error(f"Barcode generation failed for '{op['value']}': {str(e)}")

        else:
            key = (op['size'], op['bold'])
            if key not in fonts:
                fonts[key] = load_font(op['size'] * scale, op['bold'])
            font = fonts[key]
            x, y = op['x'] * scale, op['y'] * scale
            width = op['width'] * scale if op['width'] else None

            if width and op['align'] == 'left':
                for index, line in enumerate(wrap_text(draw, op['text'], font, width)):
                    draw.text((x, y + index * (op['size'] + 3) * scale), line, fill=op['color'], font=font)
                continue

            if width:
                text_width = draw.textlength(op['text'], font=font)
                if op['align'] == 'right':
                    x = x + width - text_width
                elif op['align'] == 'center':
                    x = x + (width - text_width) / 2
            draw.text((x, y), op['text'], fill=op['color'], font=font)

    return image


def render_pdf(layout, title=None):
    """Rasterise every page and return the PDF bytes"""
    fonts = {}
    images = [render_page(operations, fonts) for operations in layout.pages]
    buffer = io.BytesIO()
    images[0].save(
        buffer,
        format='PDF',
        save_all=True,
        append_images=images[1:],
        resolution=72 * RENDER_SCALE,
        title=title or 'Invoice',
        author=settings.INVOICE_COMPANY['name'],
        subject='Invoice',
    )
    return buffer.getvalue()


def invoice_pdf_data(invoice):
    """Flatten an Invoice (with order, items and customer) into layout input"""
    order = invoice.order
    user = order.user if order else None
    bill_to = None
    if user:
        profile = getattr(user, 'kyc_profile', None)
        bill_to = {'name': user.display_name, 'email': user.email}
        if profile:
            bill_to.update({
                'business_name': profile.business_name,
                'address_line1': profile.address_line1,
                'address_line2': profile.address_line2,
                'city': profile.city,
                'state': profile.state,
                'postal_code': profile.postal_code,
                'gst_number': profile.gst_number,
                'pan_number': profile.pan_number,
            })

    return {
        'invoice_number': invoice.invoice_number,
        'issue_date': invoice.issue_date,
        'due_date': invoice.due_date,
        'order_reference': order.reference if order else None,
        'bill_to': bill_to,
        'items': [
            {
                'name': item.name,
                'sku': item.sku,
                'unit_price': item.unit_price,
                'quantity': item.quantity,
                'total_price': item.total_price,
            }
            for item in order.items.all()
        ] if order else [],
        'subtotal_amount': invoice.subtotal_amount,
        'discount_amount': invoice.discount_amount,
        'tax_amount': invoice.tax_amount,
        'total_amount': invoice.total_amount,
        'currency': invoice.currency,
        'notes': invoice.notes,
        'terms': invoice.terms,
    }


def generate_invoice_pdf(invoice):
    layout = build_invoice_layout(invoice_pdf_data(invoice))
    logger.debug(f"Rendering invoice {invoice.invoice_number} ({layout.page_count} pages)")
    return render_pdf(layout, title=f"Invoice {invoice.invoice_number}")
