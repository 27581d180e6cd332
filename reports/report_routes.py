import io
from datetime import datetime
from flask import Blueprint, request, jsonify, send_file
import pandas as pd
from invoices.invoice import CURRENCIES
from reports.report_service import ReportService

bp = Blueprint("reports", __name__)


@bp.route("/revenue", methods=["GET"])
def get_revenue_report():
    currency = request.args.get("currency")
    if currency and currency not in CURRENCIES:
        return jsonify({"error": f"Unsupported currency: {currency}"}), 400
    days = request.args.get("days", 7, type=int)
    return jsonify(ReportService.revenue_by_day(days=days, currency=currency)), 200


@bp.route("/receivables", methods=["GET"])
def get_receivables_report():
    return jsonify(ReportService.receivables_summary()), 200


@bp.route("/pos-sales", methods=["GET"])
def get_pos_sales_report():
    return jsonify(ReportService.pos_sales_by_category()), 200


@bp.route("/revenue/export", methods=["GET"])
def export_revenue_report():
    format_type = request.args.get('format', 'csv').lower()
    if format_type not in ('csv', 'excel'):
        return jsonify({"error": "format must be csv or excel"}), 400

    currency = request.args.get("currency")
    if currency and currency not in CURRENCIES:
        return jsonify({"error": f"Unsupported currency: {currency}"}), 400

    report = ReportService.revenue_by_day(days=request.args.get("days", 30, type=int), currency=currency)
    df = pd.DataFrame(report["daily"])
    for column in ("invoice_revenue", "pos_revenue", "total_revenue"):
        df[column] = df[column].astype(float)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    output = io.BytesIO()
    if format_type == 'excel':
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='Revenue', index=False)
            pd.DataFrame(ReportService.pos_sales_by_category()).to_excel(writer, sheet_name='POS by Category', index=False)
        output.seek(0)
        return send_file(
            output,
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            as_attachment=True,
            download_name=f'revenue_report_{report["currency"]}_{timestamp}.xlsx',
        )

    output.write(df.to_csv(index=False).encode('utf-8'))
    output.seek(0)
    return send_file(output, mimetype='text/csv', as_attachment=True, download_name=f'revenue_report_{report["currency"]}_{timestamp}.csv')
