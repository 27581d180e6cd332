def register_routes(app):
    from guests.guest_routes import bp as guest_bp
    from invoices.invoice_routes import bp as invoice_bp
    from payments.payment_routes import bp as payment_bp
    from pos.pos_routes import bp as pos_bp
    from reports.report_routes import bp as report_bp

    app.register_blueprint(guest_bp, url_prefix="/guests")
    app.register_blueprint(invoice_bp, url_prefix="/invoices")
    app.register_blueprint(payment_bp, url_prefix="/payments")
    app.register_blueprint(pos_bp, url_prefix="/pos")
    app.register_blueprint(report_bp, url_prefix="/reports")
