import os

from PIL import Image, ImageDraw, ImageFont

# Receipts are stored inside the project directory under 'receipts'
RECEIPTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "receipts")
STORE_NAME = "Lanchonete"


def _text_size(draw_obj, text, font):
    bbox = draw_obj.textbbox((0, 0), text, font=font)
    return (bbox[2] - bbox[0], bbox[3] - bbox[1])


def _wrap_text(draw_obj, text, font, max_w):
    # Wrap text to fit within max_w using the provided font
    words = (text or "").split()
    if not words:
        return [""]
    lines = []
    cur = words[0]
    for w in words[1:]:
        tw, _ = _text_size(draw_obj, cur + " " + w, font)
        if tw <= max_w:
            cur = cur + " " + w
        else:
            lines.append(cur)
            cur = w
    lines.append(cur)
    return lines


class ReceiptGenerator:
    @staticmethod
    def _load_font(size):
        # Try common system fonts, fallback to default
        candidates = ["arial.ttf", "DejaVuSans.ttf", "LiberationSans-Regular.ttf"]
        for f in candidates:
            try:
                return ImageFont.truetype(f, size)
            except OSError:
                continue
        return ImageFont.load_default()

    @staticmethod
    def filename(sale):
        return f"sale-{sale.sale_id:06d}.png"

    @staticmethod
    def generate(sale, receipts_dir=None, store_name=STORE_NAME):
        """Render a PNG receipt for a finalized sale and return the png path."""
        receipts_dir = receipts_dir or RECEIPTS_DIR
        os.makedirs(receipts_dir, exist_ok=True)
        png_path = os.path.join(receipts_dir, ReceiptGenerator.filename(sale))

        width = 640
        header_h = 150
        line_h = 24
        footer_h = 90
        x = 30

        f_head = ReceiptGenerator._load_font(26)
        f_sub = ReceiptGenerator._load_font(14)
        f_mono = ReceiptGenerator._load_font(12)

        right_boundary = width - x
        col_total_right = right_boundary
        col_price_right = col_total_right - 110
        col_qty_center = col_price_right - 70
        item_col_w = max(80, int(col_qty_center - x) - 30)

        # Precompute wrapped item names so the image height is exact
        tmp_draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        prepared = []
        items_h = 0
        for line in sale.lines:
            name_lines = _wrap_text(tmp_draw, line.product_name, f_mono, item_col_w)
            block_h = len(name_lines) * line_h + 6
            items_h += block_h
            prepared.append((name_lines, str(line.quantity), f"{line.unit_price:.2f}", f"{line.line_total:.2f}"))
        items_h = max(line_h * 2, items_h + 20)
        height = header_h + items_h + footer_h

        img = Image.new("RGB", (width, height), color=(255, 255, 255))
        draw = ImageDraw.Draw(img)

        y = 24
        draw.text((x, y), store_name, font=f_head, fill=(20, 20, 20))
        y += 40
        draw.text((x, y), f"Sale #: {sale.sale_id}", font=f_sub, fill=(0, 0, 0))
        y += 22
        local_time = sale.sold_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        draw.text((x, y), f"Date: {local_time}", font=f_sub, fill=(0, 0, 0))
        y += 30

        draw.line((x, y, right_boundary, y), fill=(200, 200, 200), width=1)
        y += 10

        # Column headers
        draw.text((x, y), "Item", font=f_mono, fill=(0, 0, 0))
        tw, _ = _text_size(draw, "Qty", f_mono)
        draw.text((col_qty_center - tw / 2, y), "Qty", font=f_mono, fill=(0, 0, 0))
        tw, _ = _text_size(draw, "Price", f_mono)
        draw.text((col_price_right - tw, y), "Price", font=f_mono, fill=(0, 0, 0))
        tw, _ = _text_size(draw, "Total", f_mono)
        draw.text((col_total_right - tw, y), "Total", font=f_mono, fill=(0, 0, 0))
        y = header_h

        for name_lines, qty, price, total in prepared:
            for i, ln in enumerate(name_lines):
                draw.text((x, y), ln, font=f_mono, fill=(20, 20, 20))
                if i == 0:
                    qw, _ = _text_size(draw, qty, f_mono)
                    draw.text((col_qty_center - qw / 2, y), qty, font=f_mono, fill=(20, 20, 20))
                    pw, _ = _text_size(draw, price, f_mono)
                    draw.text((col_price_right - pw, y), price, font=f_mono, fill=(20, 20, 20))
                    tw, _ = _text_size(draw, total, f_mono)
                    draw.text((col_total_right - tw, y), total, font=f_mono, fill=(20, 20, 20))
                y += line_h
            draw.line((x, y, right_boundary, y), fill=(245, 245, 245), width=1)
            y += 6

        y = header_h + items_h
        draw.line((x, y, right_boundary, y), fill=(200, 200, 200), width=1)
        y += 12
        total_txt = f"Total: {sale.total:,.2f}"
        tw, _ = _text_size(draw, total_txt, f_sub)
        draw.text((col_total_right - tw, y), total_txt, font=f_sub, fill=(0, 100, 0))
        draw.text((x, y + 34), "Thank you, come again!", font=f_sub, fill=(80, 80, 80))

        img.save(png_path)
        return png_path
