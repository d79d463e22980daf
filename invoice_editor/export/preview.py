"""HTML rendering of the printable invoice document.

The preview and the print fallback share one Jinja2 template; the print
variant additionally opens the browser print dialog once loaded.
"""

from jinja2 import BaseLoader, Environment

from invoice_editor.model.calculations import compute_totals, format_money
from invoice_editor.model.schema import InvoiceData

INVOICE_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Invoice {{ invoice.invoice_number }}</title>
<style>
  @page { size: A4 portrait; margin: 0; }
  body { font-family: Helvetica, Arial, sans-serif; color: #1f2937; margin: 0; }
  .invoice { box-sizing: border-box; min-height: 29.6cm; padding: 20mm; display: flex; flex-direction: column; }
  .header, .parties, .totals-row { display: flex; justify-content: space-between; }
  .header { margin-bottom: 3rem; }
  .header h1 { font-size: 2.25rem; text-transform: uppercase; margin: 0 0 .5rem; }
  .muted { color: #6b7280; }
  .due { color: #dc2626; font-weight: 600; }
  .parties { gap: 2rem; margin-bottom: 3rem; }
  .party { width: 50%; }
  .party.bill-to { text-align: right; }
  .party .name { font-weight: 700; font-size: 1.125rem; }
  .address { white-space: pre-wrap; }
  table { width: 100%; border-collapse: collapse; }
  th { border-bottom: 2px solid #1f2937; padding: .75rem 0; text-align: left; }
  td { border-bottom: 1px solid #e5e7eb; padding: 1rem 0; vertical-align: top; }
  .num { text-align: right; }
  .qty { text-align: center; }
  .items { flex-grow: 1; margin-bottom: 2rem; }
  .empty { padding: 2rem 0; text-align: center; color: #9ca3af; font-style: italic; }
  .totals { margin-left: auto; width: 33%; margin-bottom: 3rem; }
  .totals-row { padding: .5rem 0; }
  .grand-total { font-size: 1.25rem; font-weight: 700; padding: 1rem 0; }
  .footer { border-top: 1px solid #e5e7eb; padding-top: 2rem; }
  .notes { font-style: italic; white-space: pre-wrap; }
</style>
{% if print_on_load %}
<script>window.addEventListener("load", function () { window.print(); });</script>
{% endif %}
</head>
<body>
<div id="invoice-preview" class="invoice">
  <div class="header">
    <div>
      <h1>Invoice</h1>
      <div class="muted">#{{ invoice.invoice_number }}</div>
    </div>
    <div class="num">
      <div class="muted">Date</div>
      <div><strong>{{ invoice.date }}</strong></div>
      {% if invoice.due_date %}
      <div class="muted">Due Date</div>
      <div class="due">{{ invoice.due_date }}</div>
      {% endif %}
    </div>
  </div>

  <div class="parties">
    {% for label, party, placeholder, css in [
        ("From", invoice.sender, "Sender Name", "from"),
        ("Bill To", invoice.recipient, "Recipient Name", "bill-to")] %}
    <div class="party {{ css }}">
      <div class="muted">{{ label }}</div>
      <div class="name">{{ party.name or placeholder }}</div>
      {% if party.email %}<div>{{ party.email }}</div>{% endif %}
      {% if party.phone %}<div>{{ party.phone }}</div>{% endif %}
      {% if party.address %}<div class="address">{{ party.address }}</div>{% endif %}
    </div>
    {% endfor %}
  </div>

  <div class="items">
    <table>
      <thead>
        <tr><th>Description</th><th class="qty">Quantity</th><th class="num">Unit Price</th><th class="num">Total</th></tr>
      </thead>
      <tbody>
        {% for item in invoice.items %}
        <tr>
          <td>{{ item.description }}</td>
          <td class="qty">{{ item.quantity | quantity }}</td>
          <td class="num">{{ totals.currency_symbol }}{{ item.price | money }}</td>
          <td class="num">{{ totals.currency_symbol }}{{ (item.quantity * item.price) | money }}</td>
        </tr>
        {% endfor %}
      </tbody>
    </table>
    {% if not invoice.items %}<div class="empty">No items added yet.</div>{% endif %}
  </div>

  <div class="totals">
    <div class="totals-row"><span>Subtotal</span><span>{{ totals.currency_symbol }}{{ totals.subtotal | money }}</span></div>
    {% if totals.show_tax %}
    <div class="totals-row"><span>Tax ({{ invoice.tax_rate | quantity }}%)</span><span>{{ totals.currency_symbol }}{{ totals.tax_amount | money }}</span></div>
    {% endif %}
    <div class="totals-row grand-total"><span>TOTAL</span><span>{{ totals.currency_symbol }}{{ totals.total | money }}</span></div>
  </div>

  {% if invoice.notes or invoice.payment_terms %}
  <div class="footer">
    {% if invoice.payment_terms %}
    <h4>Payment Instructions:</h4>
    <p>{{ invoice.payment_terms }}</p>
    {% endif %}
    {% if invoice.notes %}
    <h4>Notes:</h4>
    <p class="notes">{{ invoice.notes }}</p>
    {% endif %}
  </div>
  {% endif %}
</div>
</body>
</html>
"""


def format_quantity(value: float) -> str:
    """Render a number without a trailing ``.0`` (1.0 -> "1", 2.5 -> "2.5")."""
    return f"{value:g}"


_env = Environment(loader=BaseLoader(), autoescape=True, trim_blocks=True, lstrip_blocks=True)
_env.filters["money"] = format_money
_env.filters["quantity"] = format_quantity
_template = _env.from_string(INVOICE_HTML_TEMPLATE)


def render_invoice_html(invoice: InvoiceData, print_on_load: bool = False) -> str:
    """Render ``invoice`` as a standalone HTML document.

    Args:
        invoice: Invoice to render
        print_on_load: Open the browser print dialog when the page loads

    Returns:
        HTML document text
    """
    return _template.render(
        invoice=invoice,
        totals=compute_totals(invoice),
        print_on_load=print_on_load,
    )
