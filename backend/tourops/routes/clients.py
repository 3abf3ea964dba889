# Overview: Flask API routes for clients (reservation submissions); parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import handle_errors, require_auth
from ..request_context import audit, json_body
from ..services import reservation_service


clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@handle_errors("fetch clients")
@require_auth
def list_clients_route():
    """Optional filters: ?status=<status>&search=<name or email fragment>."""
    clients = reservation_service.list_clients(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify([client.to_dict() for client in clients])


@clients_bp.post("")
@handle_errors("create client")
@require_auth
def create_client_route():
    client = reservation_service.create_client(json_body())
    audit("CREATE", f"Created client: {client.name}", "CLIENT", client.id)
    return jsonify({"status": "OK", "clientId": client.id, "client": client.to_dict()}), 201


@clients_bp.get("/<int:client_id>")
@handle_errors("fetch client")
@require_auth
def get_client_route(client_id: int):
    return jsonify(reservation_service.get_client(client_id).to_dict())


@clients_bp.put("/<int:client_id>")
@handle_errors("update client")
@require_auth
def update_client_route(client_id: int):
    client = reservation_service.update_client(client_id, json_body())
    audit("UPDATE", f"Updated client: {client.name}", "CLIENT", client.id)
    return jsonify({"status": "OK", "client": client.to_dict()})


@clients_bp.delete("/<int:client_id>")
@handle_errors("delete client")
@require_auth
def delete_client_route(client_id: int):
    deleted = reservation_service.delete_client(client_id)
    audit("DELETE", f"Deleted client: {deleted['name']}", "CLIENT", client_id)
    return jsonify({"status": "OK"})
