import os
import time
from datetime import datetime
from uuid import uuid4

import structlog
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from helpers.formatting import format_price, format_quantity
from models.category import Category
from models.product import Product
from services.storage import media_root, media_url

logger = structlog.get_logger()

PDF_FOLDER = 'pdfs'
LAYOUTS = ('regular', 'catalog')


def _latin(text):
    # core PDF fonts only cover latin-1
    return str(text if text is not None else '').encode('latin-1', 'replace').decode('latin-1')


class PriceListPDF(FPDF):

    def __init__(self, title, subtitle=None):
        super().__init__(orientation='P', unit='mm', format='A4')
        self.title_text = title
        self.subtitle = subtitle
        self.set_auto_page_break(auto=True, margin=15)

    def header(self):
        self.set_font('Helvetica', 'B', 16)
        self.cell(0, 9, _latin(self.title_text), align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        if self.subtitle:
            self.set_font('Helvetica', '', 9)
            self.cell(0, 5, _latin(self.subtitle), align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(3)

    def footer(self):
        self.set_y(-12)
        self.set_font('Helvetica', 'I', 8)
        self.cell(0, 8, f'Page {self.page_no()}/{{nb}}', align='C')

    def row(self, widths, values, bold=False, fill=False, aligns=None):
        self.set_font('Helvetica', 'B' if bold else '', 9)
        aligns = aligns or ['L'] * len(values)
        for width, value, align in zip(widths, values, aligns):
            self.cell(width, 7, _latin(value), border=1, align=align, fill=fill,
                      new_x=XPos.RIGHT, new_y=YPos.TOP)
        self.ln(7)


def products_for_pdf(product_ids=None):
    """Active products (or the chosen ones) ordered by category then name."""
    query = Product.query.outerjoin(Category)
    if product_ids:
        query = query.filter(Product.id.in_(product_ids))
    else:
        query = query.filter(Product.status == 'active')
    return query.order_by(Category.display_order, Category.name, Product.name).all()


def _grouped(products):
    groups = {}
    for product in products:
        groups.setdefault(product.category.name if product.category else 'Other', []).append(product)
    return groups


def _subtitle():
    return datetime.now().strftime('Generated on %d %b %Y at %I:%M %p')


def _render_regular(pdf, products):
    widths = [70, 28, 30, 30, 32]
    headings = ['Product', 'Code', 'Regular price', 'Offer price', 'Unit']
    aligns = ['L', 'L', 'R', 'R', 'C']
    for category_name, items in _grouped(products).items():
        pdf.set_font('Helvetica', 'B', 11)
        pdf.set_fill_color(230, 240, 230)
        pdf.cell(0, 8, _latin(category_name), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_fill_color(245, 245, 245)
        pdf.row(widths, headings, bold=True, fill=True, aligns=aligns)
        for product in items:
            offer = format_price(product.selling_price) if product.has_discount else '-'
            pdf.row(widths, [product.name, product.item_code, format_price(product.regular_price),
                             offer, product.stock_unit], aligns=aligns)
        pdf.ln(3)


def _render_catalog(pdf, products):
    card_width, card_height, gap = 92, 26, 6
    for category_name, items in _grouped(products).items():
        pdf.set_font('Helvetica', 'B', 12)
        pdf.cell(0, 9, _latin(category_name), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        for index, product in enumerate(items):
            column = index % 2
            if column == 0 and pdf.get_y() + card_height > pdf.h - 20:
                pdf.add_page()
            x = pdf.l_margin + column * (card_width + gap)
            y = pdf.get_y()
            pdf.rect(x, y, card_width, card_height)
            pdf.set_xy(x + 3, y + 2)
            pdf.set_font('Helvetica', 'B', 10)
            pdf.cell(card_width - 6, 6, _latin(product.name))
            pdf.set_xy(x + 3, y + 9)
            pdf.set_font('Helvetica', '', 8)
            pdf.cell(card_width - 6, 5, _latin(f'Code: {product.item_code}  |  Per {product.stock_unit}'))
            pdf.set_xy(x + 3, y + 16)
            pdf.set_font('Helvetica', 'B', 11)
            if product.has_discount:
                label = f'{format_price(product.selling_price)}  (was {format_price(product.regular_price)})'
            else:
                label = format_price(product.regular_price)
            pdf.cell(card_width - 6, 6, _latin(label))
            if column == 1 or index == len(items) - 1:
                pdf.set_xy(pdf.l_margin, y + card_height + 4)
            else:
                pdf.set_xy(pdf.l_margin, y)
        pdf.ln(2)


def generate_price_list(product_ids=None, layout='regular'):
    """Render the price list and return its path relative to the media root."""
    layout = layout if layout in LAYOUTS else 'regular'
    products = products_for_pdf(product_ids)
    title = 'Product Catalog' if layout == 'catalog' else 'Price List'
    pdf = PriceListPDF(title, _subtitle())
    pdf.alias_nb_pages()
    pdf.add_page()
    if not products:
        pdf.set_font('Helvetica', '', 11)
        pdf.cell(0, 10, 'No products available.', align='C')
    elif layout == 'catalog':
        _render_catalog(pdf, products)
    else:
        _render_regular(pdf, products)

    suffix = '-catalog' if layout == 'catalog' else ''
    filename = f"price-list{suffix}-{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}-{uuid4().hex[:6]}.pdf"
    directory = os.path.join(media_root(), PDF_FOLDER)
    os.makedirs(directory, exist_ok=True)
    pdf.output(os.path.join(directory, filename))
    path = f'{PDF_FOLDER}/{filename}'
    logger.info('price_list_generated', path=path, layout=layout, products=len(products))
    return path


def pdf_url(path):
    return media_url(path)


def render_order(lines, totals):
    """PDF bytes for a reviewed (not yet placed) order."""
    pdf = PriceListPDF('Order Summary', _subtitle())
    pdf.alias_nb_pages()
    pdf.add_page()
    widths = [70, 25, 20, 35, 40]
    aligns = ['L', 'R', 'C', 'R', 'R']
    pdf.set_fill_color(245, 245, 245)
    pdf.row(widths, ['Product', 'Qty', 'Unit', 'Price', 'Total'], bold=True, fill=True, aligns=aligns)
    for line in lines:
        pdf.row(widths, [line['product_name'], format_quantity(line['quantity']), line['unit'],
                         format_price(line['price']), format_price(line['total'])], aligns=aligns)
    pdf.ln(2)
    summary = [('Subtotal', totals['subtotal'])]
    if totals['discount_amount']:
        summary.append(('You save', totals['discount_amount']))
    summary.append(('Grand total', totals['total_amount']))
    for label, amount in summary:
        pdf.row([150, 40], [label, format_price(amount)], bold=label == 'Grand total', aligns=['R', 'R'])
    return bytes(pdf.output())


def cleanup_old_pdfs(days=7, now=None):
    """Delete generated and uploaded PDFs older than ``days``; returns the number removed."""
    cutoff = (now or time.time()) - days * 86400
    directory = os.path.join(media_root(), PDF_FOLDER)
    removed = 0
    for root, _dirs, files in os.walk(directory):
        for name in files:
            if not name.lower().endswith('.pdf'):
                continue
            path = os.path.join(root, name)
            if os.path.getmtime(path) < cutoff:
                os.remove(path)
                removed += 1
    logger.info('old_pdfs_removed', removed=removed, days=days)
    return removed
