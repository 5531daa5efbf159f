from __future__ import annotations

from flask import Blueprint, request

from sistema_nfe.application.cadastro_service import CadastroService
from sistema_nfe.routes.cadastro_routes import respond


financeiro_bp = Blueprint("financeiro", __name__)

_CADASTRO_SERVICE = CadastroService()


@financeiro_bp.route("/api/contas", methods=["GET"])
def list_contas():
    return respond(_CADASTRO_SERVICE.list_contas(request.args))


@financeiro_bp.route("/api/contas", methods=["POST"])
def create_contas():
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.create_contas(payload))


@financeiro_bp.route("/api/contas/pagamento", methods=["PUT"])
def register_payment():
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.register_payment(payload))


@financeiro_bp.route("/api/contas", methods=["DELETE"])
def delete_conta():
    return respond(_CADASTRO_SERVICE.delete_conta(request.args))
