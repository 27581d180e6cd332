from .pricing import (
    LineInput, LinePrice, Summary, price_line_item, summarize, summarize_priced,
    clean_quantity, clean_amount, clean_money, to_decimal, quantize_money, format_money,
)
from .ledger import (
    InvoiceStatus, PaymentMethod, LedgerPayment, PaymentStatus,
    record_payment, compute_payment_status, classify_status,
)

__all__ = [
    'LineInput', 'LinePrice', 'Summary', 'price_line_item', 'summarize', 'summarize_priced',
    'clean_quantity', 'clean_amount', 'clean_money', 'to_decimal', 'quantize_money', 'format_money',
    'InvoiceStatus', 'PaymentMethod', 'LedgerPayment', 'PaymentStatus',
    'record_payment', 'compute_payment_status', 'classify_status',
]
