# Overview: Flask API routes for invoices; parses input and returns JSON responses.

"""
Invoice API routes

Invoice ids are allocated server-side (INV-001, INV-002, ...). A create that
cannot obtain a free number answers 409 with retry=true.
"""

from flask import Blueprint, jsonify, request

from ..decorators import handle_errors, require_auth
from ..request_context import audit, json_body
from ..services import invoice_service
from ..validation import parse_optional_int


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@handle_errors("fetch invoices")
@require_auth
def list_invoices_route():
    invoices = invoice_service.list_invoices(
        status=request.args.get("status"),
        client_id=parse_optional_int(request.args.get("clientId"), "clientId", minimum=1),
    )
    return jsonify([invoice.to_dict() for invoice in invoices])


@invoices_bp.post("")
@handle_errors("create invoice")
@require_auth
def create_invoice_route():
    """Body: {clientId, date, dueDate, status?, notes?, items: [{description, quantity, price}]}."""
    invoice = invoice_service.create_invoice(json_body())
    audit("CREATE", f"Created invoice {invoice.id}", "INVOICE", invoice.id)
    return jsonify({"success": True, "id": invoice.id}), 201


@invoices_bp.get("/<invoice_id>")
@handle_errors("fetch invoice")
@require_auth
def get_invoice_route(invoice_id: str):
    return jsonify(invoice_service.get_invoice(invoice_id).to_dict(include_items=True))


@invoices_bp.put("/<invoice_id>")
@handle_errors("update invoice")
@require_auth
def update_invoice_route(invoice_id: str):
    invoice = invoice_service.update_invoice(invoice_id, json_body())
    audit("UPDATE", f"Updated invoice {invoice.id}", "INVOICE", invoice.id)
    return jsonify({"success": True, "invoice": invoice.to_dict(include_items=True)})


@invoices_bp.delete("/<invoice_id>")
@handle_errors("delete invoice")
@require_auth
def delete_invoice_route(invoice_id: str):
    invoice_service.delete_invoice(invoice_id)
    audit("DELETE", f"Deleted invoice {invoice_id}", "INVOICE", invoice_id)
    return jsonify({"success": True})
