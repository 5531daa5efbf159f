from __future__ import annotations

from flask import Blueprint, jsonify, request

from sistema_nfe.application.cadastro_service import CadastroService
from sistema_nfe.domain.contracts import QueryResult


cadastro_bp = Blueprint("cadastro", __name__)

_CADASTRO_SERVICE = CadastroService()

_RESOURCE = (
    "<any(paises, estados, cidades, produtos, fornecedores, transportadoras, "
    "'formas-pagamento', 'condicoes-pagamento', marcas, categorias, 'unidades-medida', "
    "clientes, funcionarios, 'funcoes-funcionario'):resource>"
)


def respond(result: QueryResult):
    return jsonify(result.payload), result.status_code


@cadastro_bp.route(f"/api/{_RESOURCE}", methods=["GET"])
def list_records(resource: str):
    return respond(_CADASTRO_SERVICE.list_records(resource))


@cadastro_bp.route(f"/api/{_RESOURCE}/search", methods=["GET"])
def search_records(resource: str):
    return respond(_CADASTRO_SERVICE.search(resource, request.args.get("q")))


@cadastro_bp.route(f"/api/{_RESOURCE}/<record_id>", methods=["GET"])
def get_record(resource: str, record_id: str):
    return respond(_CADASTRO_SERVICE.get_record(resource, record_id))


@cadastro_bp.route(f"/api/{_RESOURCE}", methods=["POST"])
def create_record(resource: str):
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.create_record(resource, payload))


@cadastro_bp.route(f"/api/{_RESOURCE}/<record_id>", methods=["PUT"])
def update_record(resource: str, record_id: str):
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.update_record(resource, record_id, payload))


@cadastro_bp.route(f"/api/{_RESOURCE}/<record_id>", methods=["DELETE"])
def delete_record(resource: str, record_id: str):
    return respond(_CADASTRO_SERVICE.delete_record(resource, record_id))


@cadastro_bp.route("/api/estados/<codest>/cidades", methods=["GET"])
def list_cidades_do_estado(codest: str):
    return respond(_CADASTRO_SERVICE.list_cidades_do_estado(codest))


@cadastro_bp.route("/api/produtos/<codprod>/fornecedores", methods=["GET"])
def list_produto_fornecedores(codprod: str):
    return respond(_CADASTRO_SERVICE.list_produto_fornecedores(codprod))


@cadastro_bp.route("/api/produtos/<codprod>/fornecedores", methods=["POST"])
def link_produto_fornecedor(codprod: str):
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.link_produto_fornecedor(codprod, payload))


@cadastro_bp.route("/api/produtos/<codprod>/fornecedores/<codforn>", methods=["DELETE"])
def unlink_produto_fornecedor(codprod: str, codforn: str):
    return respond(_CADASTRO_SERVICE.unlink_produto_fornecedor(codprod, codforn))


@cadastro_bp.route("/api/transportadoras/<codtrans>/fornecedores", methods=["POST"])
def link_transportadora_fornecedor(codtrans: str):
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.link_transportadora_fornecedor(codtrans, payload))


@cadastro_bp.route("/api/transportadoras/<codtrans>/fornecedores/<codforn>", methods=["DELETE"])
def unlink_transportadora_fornecedor(codtrans: str, codforn: str):
    return respond(_CADASTRO_SERVICE.unlink_transportadora_fornecedor(codtrans, codforn))


@cadastro_bp.route("/api/transportadoras/<codtrans>/veiculos", methods=["POST"])
def link_transportadora_veiculo(codtrans: str):
    payload = request.get_json(silent=True) or {}
    return respond(_CADASTRO_SERVICE.link_transportadora_veiculo(codtrans, payload))


@cadastro_bp.route("/api/transportadoras/<codtrans>/veiculos/<codveiculo>", methods=["DELETE"])
def unlink_transportadora_veiculo(codtrans: str, codveiculo: str):
    return respond(_CADASTRO_SERVICE.unlink_transportadora_veiculo(codtrans, codveiculo))
