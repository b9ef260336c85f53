from models import log, margin_range, product, quotation, sale, users  # noqa: F401
