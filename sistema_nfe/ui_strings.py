from __future__ import annotations

from typing import Dict


# singular / plural / gender used to build the per-resource messages below
RESOURCE_LABELS: Dict[str, Dict[str, str]] = {
    "paises": {"singular": "país", "plural": "países", "genero": "m"},
    "estados": {"singular": "estado", "plural": "estados", "genero": "m"},
    "cidades": {"singular": "cidade", "plural": "cidades", "genero": "f"},
    "produtos": {"singular": "produto", "plural": "produtos", "genero": "m"},
    "fornecedores": {"singular": "fornecedor", "plural": "fornecedores", "genero": "m"},
    "transportadoras": {"singular": "transportadora", "plural": "transportadoras", "genero": "f"},
    "veiculos": {"singular": "veículo", "plural": "veículos", "genero": "m"},
    "formas-pagamento": {"singular": "forma de pagamento", "plural": "formas de pagamento", "genero": "f"},
    "condicoes-pagamento": {
        "singular": "condição de pagamento",
        "plural": "condições de pagamento",
        "genero": "f",
    },
    "contas": {"singular": "conta", "plural": "contas", "genero": "f"},
    "marcas": {"singular": "marca", "plural": "marcas", "genero": "f"},
    "categorias": {"singular": "categoria", "plural": "categorias", "genero": "f"},
    "unidades-medida": {"singular": "unidade de medida", "plural": "unidades de medida", "genero": "f"},
    "clientes": {"singular": "cliente", "plural": "clientes", "genero": "m"},
    "funcionarios": {"singular": "funcionário", "plural": "funcionários", "genero": "m"},
    "funcoes-funcionario": {
        "singular": "função de funcionário",
        "plural": "funções de funcionário",
        "genero": "f",
    },
}


OPERATION_VERBS: Dict[str, str] = {
    "list": "buscar",
    "search": "buscar",
    "get": "buscar",
    "create": "criar",
    "update": "atualizar",
    "delete": "excluir",
    "link": "vincular",
    "unlink": "desvincular",
    "pay": "registrar pagamento da",
    "installments": "gerar parcelas da",
}


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "link_created": "Vínculo criado com sucesso",
        "link_removed": "Vínculo removido com sucesso",
    },
    "error": {
        "invalid_request": "Requisição inválida.",
        "invalid_json": "Corpo da requisição inválido.",
        "record_not_found": "Registro não encontrado.",
        "unexpected_error": "Não foi possível concluir a operação. Tente novamente em instantes.",
        "search_term_required": "Parâmetro de busca não fornecido",
        "pais_fields_required": "Código e nome do país são obrigatórios",
        "pais_code_invalid": "O código do país deve ter exatamente 2 caracteres",
        "pais_code_in_use": "Este código de país já está em uso",
        "pais_has_states": "Não é possível excluir o país pois existem estados vinculados",
        "estado_fields_required": "Nome do estado, UF e código do país são obrigatórios",
        "estado_uf_invalid": "A UF deve ter exatamente 2 caracteres",
        "estado_has_cities": "Não é possível excluir o estado pois existem cidades vinculadas",
        "cidade_fields_required": "Nome da cidade e estado são obrigatórios",
        "cidade_has_links": "Não é possível excluir a cidade pois existem cadastros vinculados a ela",
        "produto_name_required": "Nome do produto é obrigatório",
        "produto_price_invalid": "O valor unitário deve ser um número maior ou igual a zero",
        "produto_has_suppliers": "Não é possível excluir: produto vinculado a fornecedores",
        "razao_social_required": "Razão social é obrigatória",
        "cnpj_invalid": "CNPJ deve conter 14 dígitos",
        "cnpj_in_use": "Já existe um cadastro com este CNPJ",
        "cidade_invalid": "É necessário selecionar uma cidade válida",
        "fornecedor_has_links": "Não é possível excluir o fornecedor pois existem produtos ou transportadoras vinculados",
        "transportadora_has_links": "Não é possível excluir a transportadora pois existem fornecedores ou veículos vinculados",
        "placa_required": "Placa do veículo é obrigatória",
        "link_already_exists": "Este vínculo já existe",
        "link_not_found": "Vínculo não encontrado",
        "forma_description_required": "Descrição da forma de pagamento é obrigatória",
        "forma_in_use": "Já existe uma forma de pagamento com esta descrição",
        "forma_has_links": "Não é possível excluir a forma de pagamento pois existem parcelas ou contas vinculadas",
        "condicao_fields_required": "Descrição e parcelas são obrigatórias",
        "condicao_percentages_sum": "A soma dos percentuais das parcelas deve ser 100%",
        "condicao_description_in_use": "Já existe uma condição de pagamento com esta descrição",
        "parcela_incomplete": "Dados da parcela incompletos",
        "parcela_duplicated": "Número de parcela repetido",
        "forma_pagamento_missing": "Forma de pagamento da parcela não encontrada",
        "percentual_invalid": "Percentual inválido",
        "conta_fields_required": "Dados obrigatórios não fornecidos",
        "conta_tipo_invalid": "Tipo deve ser P (pagar) ou R (receber)",
        "conta_date_invalid": "Data inválida, use o formato AAAA-MM-DD",
        "conta_value_invalid": "Valor inválido",
        "contas_already_exist": "Já existem contas cadastradas para esta nota fiscal",
        "conta_already_paid": "Esta conta já foi paga",
        "conta_paid_cannot_delete": "Não é possível excluir uma conta já paga",
        "condicao_has_clientes": "Não é possível excluir a condição de pagamento pois existem clientes vinculados",
        "marca_name_required": "Nome da marca é obrigatório",
        "marca_name_in_use": "Já existe uma marca com este nome",
        "marca_has_produtos": "Não é possível excluir a marca pois existem produtos vinculados",
        "categoria_name_required": "Nome da categoria é obrigatório",
        "categoria_name_in_use": "Já existe uma categoria com este nome",
        "categoria_has_produtos": "Não é possível excluir a categoria pois existem produtos vinculados",
        "unidade_name_required": "Nome da unidade é obrigatório",
        "unidade_sigla_required": "Sigla da unidade é obrigatória",
        "unidade_name_in_use": "Já existe uma unidade com este nome",
        "unidade_sigla_in_use": "Já existe uma unidade com esta sigla",
        "unidade_has_produtos": "Não é possível excluir a unidade pois existem produtos vinculados",
        "funcao_name_required": "Nome da função é obrigatório",
        "funcao_name_in_use": "Já existe uma função com este nome",
        "funcao_carga_horaria_invalid": "Carga horária semanal deve ser um número entre 0 e 168 horas",
        "funcao_has_funcionarios": "Não é possível excluir a função pois existem funcionários vinculados",
        "pessoa_fields_required": "Tipo de pessoa e nome/razão social são obrigatórios",
        "tipopessoa_invalid": "Tipo de pessoa deve ser F (física) ou J (jurídica)",
        "cpfcnpj_invalid": "Formato de CPF/CNPJ inválido",
        "cpfcnpj_in_use": "Já existe uma pessoa cadastrada com este CPF/CNPJ",
        "salario_invalid": "Salário inválido",
    },
}


def _article(resource: str) -> str:
    return "a" if RESOURCE_LABELS[resource]["genero"] == "f" else "o"


def _singular(resource: str) -> str:
    return RESOURCE_LABELS[resource]["singular"]


def not_found_message(resource: str) -> str:
    singular = _singular(resource)
    return f"{singular[:1].upper()}{singular[1:]} não encontrad{_article(resource)}"


def id_required_message(resource: str) -> str:
    return f"Código d{_article(resource)} {_singular(resource)} é obrigatório"


def id_invalid_message(resource: str) -> str:
    return f"Código d{_article(resource)} {_singular(resource)} inválido"


def deleted_message(resource: str) -> str:
    singular = _singular(resource)
    return f"{singular[:1].upper()}{singular[1:]} excluíd{_article(resource)} com sucesso"


def operation_failed_message(resource: str, operation: str) -> str:
    labels = RESOURCE_LABELS[resource]
    verb = OPERATION_VERBS.get(operation, "processar")
    noun = labels["plural"] if operation in {"list", "search"} else labels["singular"]
    return f"Erro ao {verb} {noun}"


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None) -> str:
    return get_message("success", key, default)
