from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping

from sistema_nfe.db import UNSET
from sistema_nfe.errors import AppError, ValidationError
from sistema_nfe.formatting import only_digits


class ResultKind(str, enum.Enum):
    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


_STATUS_BY_KIND = {
    ResultKind.OK: 200,
    ResultKind.VALIDATION_ERROR: 400,
    ResultKind.NOT_FOUND: 404,
    ResultKind.STORE_ERROR: 500,
}


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one data-access operation.

    ``kind`` tells callers which category happened so they never have to
    match on message text; ``payload`` is the JSON body for the response.
    """

    kind: ResultKind
    payload: Any
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.OK

    @classmethod
    def success(cls, payload: Any, status_code: int = 200) -> "QueryResult":
        return cls(kind=ResultKind.OK, payload=payload, status_code=status_code)

    @classmethod
    def validation(cls, message: str) -> "QueryResult":
        return cls(kind=ResultKind.VALIDATION_ERROR, payload={"error": message}, status_code=400)

    @classmethod
    def not_found(cls, message: str) -> "QueryResult":
        return cls(kind=ResultKind.NOT_FOUND, payload={"error": message}, status_code=404)

    @classmethod
    def store_failure(cls, message: str) -> "QueryResult":
        return cls(kind=ResultKind.STORE_ERROR, payload={"error": message}, status_code=500)

    @classmethod
    def from_app_error(cls, exc: AppError) -> "QueryResult":
        kind = {400: ResultKind.VALIDATION_ERROR, 404: ResultKind.NOT_FOUND}.get(
            exc.http_status, ResultKind.STORE_ERROR
        )
        return cls(kind=kind, payload=exc.to_response_payload(), status_code=_STATUS_BY_KIND[kind])


@dataclass(frozen=True)
class SearchSuggestion:
    """Autocomplete projection: the matched record, its name and the joined entity name."""

    id: Any
    name: str
    related_name: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "relatedName": self.related_name}


def invalid(message_key: str, **payload: Any) -> ValidationError:
    return ValidationError(message_key=message_key, payload=payload or None)


def _raw(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        return UNSET
    return payload[key]


def optional_text(payload: Mapping[str, Any], key: str, *, upper: bool = False):
    value = _raw(payload, key)
    if value is UNSET:
        return UNSET
    text = str(value if value is not None else "").strip()
    if not text:
        return None
    return text.upper() if upper else text


def optional_int(payload: Mapping[str, Any], key: str, message_key: str = "invalid_request"):
    value = _raw(payload, key)
    if value is UNSET:
        return UNSET
    if value is None or str(value).strip() == "":
        return None
    if isinstance(value, bool):
        raise invalid(message_key)
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise invalid(message_key) from exc


def optional_number(payload: Mapping[str, Any], key: str, message_key: str = "invalid_request"):
    value = _raw(payload, key)
    if value is UNSET:
        return UNSET
    if value is None or str(value).strip() == "":
        return None
    if isinstance(value, bool):
        raise invalid(message_key)
    try:
        number = float(str(value).strip().replace(",", "."))
    except ValueError as exc:
        raise invalid(message_key) from exc
    if not math.isfinite(number):
        raise invalid(message_key)
    return number


def optional_iso_date(payload: Mapping[str, Any], key: str, message_key: str = "invalid_request"):
    value = optional_text(payload, key)
    if value is UNSET or value is None:
        return value
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError as exc:
        raise invalid(message_key) from exc


def optional_cnpj(payload: Mapping[str, Any], key: str = "cnpj"):
    value = optional_text(payload, key)
    if value is UNSET or value is None:
        return value
    digits = only_digits(value)
    if len(digits) != 14:
        raise invalid("cnpj_invalid")
    return digits


def _present(value: Any) -> bool:
    return value is not UNSET and value is not None


@dataclass(frozen=True)
class PaisInput:
    codpais: Any = UNSET
    nomepais: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PaisInput":
        codpais = optional_text(payload, "codpais", upper=True)
        if _present(codpais) and len(codpais) != 2:
            raise invalid("pais_code_invalid")
        return cls(codpais=codpais, nomepais=optional_text(payload, "nomepais"))

    def require_complete(self) -> None:
        if not (_present(self.codpais) and _present(self.nomepais)):
            raise invalid("pais_fields_required")


@dataclass(frozen=True)
class EstadoInput:
    nomeestado: Any = UNSET
    uf: Any = UNSET
    codpais: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "EstadoInput":
        uf = optional_text(payload, "uf", upper=True)
        if _present(uf) and len(uf) != 2:
            raise invalid("estado_uf_invalid")
        return cls(
            nomeestado=optional_text(payload, "nomeestado"),
            uf=uf,
            codpais=optional_text(payload, "codpais", upper=True),
        )

    def require_complete(self) -> None:
        if not all(_present(value) for value in (self.nomeestado, self.uf, self.codpais)):
            raise invalid("estado_fields_required")


@dataclass(frozen=True)
class CidadeInput:
    nomecidade: Any = UNSET
    codest: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CidadeInput":
        return cls(
            nomecidade=optional_text(payload, "nomecidade"),
            codest=optional_int(payload, "codest", "cidade_fields_required"),
        )

    def require_complete(self) -> None:
        if not (_present(self.nomecidade) and _present(self.codest)):
            raise invalid("cidade_fields_required")


@dataclass(frozen=True)
class ProdutoInput:
    nome: Any = UNSET
    ncm: Any = UNSET
    cfop: Any = UNSET
    unidade: Any = UNSET
    codunidade: Any = UNSET
    codcategoria: Any = UNSET
    codmarca: Any = UNSET
    valorunitario: Any = UNSET
    datacadastro: Any = UNSET
    aliq_icms: Any = UNSET
    aliq_ipi: Any = UNSET
    aliq_pis: Any = UNSET
    aliq_cofins: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProdutoInput":
        valorunitario = optional_number(payload, "valorunitario", "produto_price_invalid")
        if _present(valorunitario) and valorunitario < 0:
            raise invalid("produto_price_invalid")
        return cls(
            nome=optional_text(payload, "nome"),
            ncm=optional_text(payload, "ncm"),
            cfop=optional_text(payload, "cfop"),
            unidade=optional_text(payload, "unidade", upper=True),
            codunidade=optional_int(payload, "codunidade"),
            codcategoria=optional_int(payload, "codcategoria"),
            codmarca=optional_int(payload, "codmarca"),
            valorunitario=valorunitario,
            datacadastro=optional_iso_date(payload, "datacadastro"),
            aliq_icms=optional_number(payload, "aliq_icms"),
            aliq_ipi=optional_number(payload, "aliq_ipi"),
            aliq_pis=optional_number(payload, "aliq_pis"),
            aliq_cofins=optional_number(payload, "aliq_cofins"),
        )

    def require_complete(self) -> None:
        if not _present(self.nome):
            raise invalid("produto_name_required")


@dataclass(frozen=True)
class ParceiroInput:
    """Shared shape of suppliers and carriers (legal entity plus address)."""

    nomerazao: Any = UNSET
    cnpj: Any = UNSET
    inscricaoestadual: Any = UNSET
    endereco: Any = UNSET
    numero: Any = UNSET
    complemento: Any = UNSET
    bairro: Any = UNSET
    cep: Any = UNSET
    codcid: Any = UNSET
    telefone: Any = UNSET
    email: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ParceiroInput":
        cep = optional_text(payload, "cep")
        return cls(
            nomerazao=optional_text(payload, "nomerazao"),
            cnpj=optional_cnpj(payload),
            inscricaoestadual=optional_text(payload, "inscricaoestadual"),
            endereco=optional_text(payload, "endereco"),
            numero=optional_text(payload, "numero"),
            complemento=optional_text(payload, "complemento"),
            bairro=optional_text(payload, "bairro"),
            cep=(only_digits(cep) or None) if _present(cep) else cep,
            codcid=optional_int(payload, "codcid", "cidade_invalid"),
            telefone=optional_text(payload, "telefone"),
            email=optional_text(payload, "email"),
        )

    def require_complete(self) -> None:
        if not _present(self.nomerazao):
            raise invalid("razao_social_required")
        if not _present(self.cnpj):
            raise invalid("cnpj_invalid")


@dataclass(frozen=True)
class FormaPagamentoInput:
    descricao: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FormaPagamentoInput":
        return cls(descricao=optional_text(payload, "descricao"))

    def require_complete(self) -> None:
        if not _present(self.descricao):
            raise invalid("forma_description_required")


@dataclass(frozen=True)
class ParcelaInput:
    numparc: int
    codformapgto: int
    dias: int
    percentual: float

    @classmethod
    def from_payload(cls, payload: Any) -> "ParcelaInput":
        if not isinstance(payload, Mapping):
            raise invalid("parcela_incomplete")
        numparc = optional_int(payload, "numparc", "parcela_incomplete")
        codformapgto = optional_int(payload, "codformapgto", "parcela_incomplete")
        dias = optional_int(payload, "dias", "parcela_incomplete")
        percentual = optional_number(payload, "percentual", "percentual_invalid")
        if not all(_present(value) for value in (numparc, codformapgto, dias, percentual)):
            raise invalid("parcela_incomplete")
        if numparc < 1 or dias < 0:
            raise invalid("parcela_incomplete")
        if percentual <= 0 or percentual > 100:
            raise invalid("percentual_invalid")
        return cls(numparc=numparc, codformapgto=codformapgto, dias=dias, percentual=percentual)


@dataclass(frozen=True)
class CondicaoPagamentoInput:
    descricao: Any = UNSET
    juros_perc: Any = UNSET
    multa_perc: Any = UNSET
    desconto_perc: Any = UNSET
    parcelas: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CondicaoPagamentoInput":
        raw_parcelas = _raw(payload, "parcelas")
        parcelas: Any = UNSET
        if raw_parcelas is not UNSET:
            if not isinstance(raw_parcelas, list) or not raw_parcelas:
                raise invalid("condicao_fields_required")
            parcelas = sorted(
                (ParcelaInput.from_payload(item) for item in raw_parcelas),
                key=lambda parcela: parcela.numparc,
            )
            numbers = [parcela.numparc for parcela in parcelas]
            if len(set(numbers)) != len(numbers):
                raise invalid("parcela_duplicated")
            if abs(sum(parcela.percentual for parcela in parcelas) - 100.0) > 0.01:
                raise invalid("condicao_percentages_sum")
        return cls(
            descricao=optional_text(payload, "descricao"),
            juros_perc=optional_number(payload, "juros_perc", "percentual_invalid"),
            multa_perc=optional_number(payload, "multa_perc", "percentual_invalid"),
            desconto_perc=optional_number(payload, "desconto_perc", "percentual_invalid"),
            parcelas=parcelas,
        )

    def require_complete(self) -> None:
        if not _present(self.descricao) or not _present(self.parcelas):
            raise invalid("condicao_fields_required")


@dataclass(frozen=True)
class ProdutoFornecedorInput:
    codforn: int
    valor_custo: float | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProdutoFornecedorInput":
        codforn = optional_int(payload, "codforn", "invalid_request")
        if not _present(codforn):
            raise invalid("invalid_request")
        valor_custo = optional_number(payload, "valor_custo", "conta_value_invalid")
        if _present(valor_custo) and valor_custo < 0:
            raise invalid("conta_value_invalid")
        return cls(codforn=codforn, valor_custo=valor_custo if _present(valor_custo) else None)


@dataclass(frozen=True)
class VeiculoInput:
    codveiculo: int | None = None
    placa: str | None = None
    modelo: str | None = None
    descricao: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "VeiculoInput":
        codveiculo = optional_int(payload, "codveiculo")
        placa = optional_text(payload, "placa", upper=True)
        if not _present(codveiculo) and not _present(placa):
            raise invalid("placa_required")
        modelo = optional_text(payload, "modelo")
        descricao = optional_text(payload, "descricao")
        return cls(
            codveiculo=codveiculo if _present(codveiculo) else None,
            placa=placa.replace("-", "") if _present(placa) else None,
            modelo=modelo if _present(modelo) else None,
            descricao=descricao if _present(descricao) else None,
        )


@dataclass(frozen=True)
class ContaKey:
    modelo: int
    serie: int
    numnfe: int
    codparc: int
    numparc: int

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ContaKey":
        values = {
            name: optional_int(payload, name, "conta_fields_required")
            for name in ("modelo", "serie", "numnfe", "codparc", "numparc")
        }
        if not all(_present(value) for value in values.values()):
            raise invalid("conta_fields_required")
        return cls(**values)

    def as_params(self) -> tuple:
        return (self.modelo, self.serie, self.numnfe, self.codparc, self.numparc)


@dataclass(frozen=True)
class ContaParcelaInput:
    codparc: int
    numparc: int
    datavencimento: str
    valorparcela: float
    codformapgto: int | None = None


@dataclass(frozen=True)
class ContasCreateInput:
    modelo: int
    serie: int
    numnfe: int
    tipo: str
    parcelas: List[ContaParcelaInput] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ContasCreateInput":
        header = {name: optional_int(payload, name, "conta_fields_required") for name in ("modelo", "serie", "numnfe")}
        tipo = optional_text(payload, "tipo", upper=True)
        raw_parcelas = _raw(payload, "parcelas")
        if not all(_present(value) for value in header.values()) or not _present(tipo):
            raise invalid("conta_fields_required")
        if not isinstance(raw_parcelas, list) or not raw_parcelas:
            raise invalid("conta_fields_required")
        if tipo not in {"P", "R"}:
            raise invalid("conta_tipo_invalid")

        parcelas: List[ContaParcelaInput] = []
        for item in raw_parcelas:
            if not isinstance(item, Mapping):
                raise invalid("conta_fields_required")
            codparc = optional_int(item, "codparc", "conta_fields_required")
            numparc = optional_int(item, "numparc", "conta_fields_required")
            datavencimento = optional_iso_date(item, "datavencimento", "conta_date_invalid")
            valorparcela = optional_number(item, "valorparcela", "conta_value_invalid")
            codformapgto = optional_int(item, "codformapgto", "forma_pagamento_missing")
            if not all(_present(value) for value in (codparc, numparc, datavencimento, valorparcela)):
                raise invalid("conta_fields_required")
            if valorparcela <= 0:
                raise invalid("conta_value_invalid")
            parcelas.append(
                ContaParcelaInput(
                    codparc=codparc,
                    numparc=numparc,
                    datavencimento=datavencimento,
                    valorparcela=valorparcela,
                    codformapgto=codformapgto if _present(codformapgto) else None,
                )
            )
        keys = [(parcela.codparc, parcela.numparc) for parcela in parcelas]
        if len(set(keys)) != len(keys):
            raise invalid("parcela_duplicated")
        return cls(tipo=tipo, parcelas=parcelas, **header)


@dataclass(frozen=True)
class PagamentoInput:
    key: ContaKey
    datapagamento: str
    valorpago: float
    codformapgto: Any = UNSET
    juros_valor: float = 0.0
    multa_valor: float = 0.0
    desconto_valor: float = 0.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PagamentoInput":
        key = ContaKey.from_mapping(payload)
        datapagamento = optional_iso_date(payload, "datapagamento", "conta_date_invalid")
        valorpago = optional_number(payload, "valorpago", "conta_value_invalid")
        if not _present(datapagamento) or not _present(valorpago):
            raise invalid("conta_fields_required")
        if valorpago <= 0:
            raise invalid("conta_value_invalid")
        adjustments = {}
        for name in ("juros_valor", "multa_valor", "desconto_valor"):
            value = optional_number(payload, name, "conta_value_invalid")
            if _present(value) and value < 0:
                raise invalid("conta_value_invalid")
            adjustments[name] = value if _present(value) else 0.0
        return cls(
            key=key,
            datapagamento=datapagamento,
            valorpago=valorpago,
            codformapgto=optional_int(payload, "codformapgto", "forma_pagamento_missing"),
            **adjustments,
        )


@dataclass(frozen=True)
class ContasFilter:
    tipo: str | None = None
    status: str | None = None
    modelo: int | None = None
    serie: int | None = None
    numnfe: int | None = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ContasFilter":
        tipo = optional_text(args, "tipo", upper=True)
        status = optional_text(args, "status", upper=True)
        if _present(tipo) and tipo not in {"P", "R"}:
            raise invalid("conta_tipo_invalid")
        invoice = {name: optional_int(args, name, "invalid_request") for name in ("modelo", "serie", "numnfe")}
        # the invoice filter only applies when all three parts are given
        if not all(_present(value) for value in invoice.values()):
            invoice = {"modelo": None, "serie": None, "numnfe": None}
        return cls(
            tipo=tipo if _present(tipo) else None,
            status=status if status in {"PAGO", "ABERTO", "VENCIDO"} else None,
            **invoice,
        )


def optional_bool(payload: Mapping[str, Any], key: str, message_key: str = "invalid_request"):
    value = _raw(payload, key)
    if value is UNSET or value is None:
        return value
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "1", "sim", "s"}:
        return True
    if text in {"false", "0", "nao", "não", "n", ""}:
        return False
    raise invalid(message_key)


@dataclass(frozen=True)
class MarcaInput:
    nome_marca: Any = UNSET
    situacao: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MarcaInput":
        return cls(
            nome_marca=optional_text(payload, "nome_marca"),
            situacao=optional_iso_date(payload, "situacao", "conta_date_invalid"),
        )

    def require_complete(self) -> None:
        if not _present(self.nome_marca):
            raise invalid("marca_name_required")


@dataclass(frozen=True)
class CategoriaInput:
    nome_categoria: Any = UNSET
    situacao: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CategoriaInput":
        return cls(
            nome_categoria=optional_text(payload, "nome_categoria"),
            situacao=optional_iso_date(payload, "situacao", "conta_date_invalid"),
        )

    def require_complete(self) -> None:
        if not _present(self.nome_categoria):
            raise invalid("categoria_name_required")


@dataclass(frozen=True)
class UnidadeMedidaInput:
    nome_unidade: Any = UNSET
    sigla_unidade: Any = UNSET
    situacao: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UnidadeMedidaInput":
        return cls(
            nome_unidade=optional_text(payload, "nome_unidade"),
            sigla_unidade=optional_text(payload, "sigla_unidade", upper=True),
            situacao=optional_iso_date(payload, "situacao", "conta_date_invalid"),
        )

    def require_complete(self) -> None:
        if not _present(self.nome_unidade):
            raise invalid("unidade_name_required")
        if not _present(self.sigla_unidade):
            raise invalid("unidade_sigla_required")


@dataclass(frozen=True)
class FuncaoFuncionarioInput:
    nome_funcao: Any = UNSET
    exige_cnh: Any = UNSET
    carga_horaria_semanal: Any = UNSET
    situacao: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FuncaoFuncionarioInput":
        carga = optional_number(payload, "carga_horaria_semanal", "funcao_carga_horaria_invalid")
        if _present(carga) and not 0 <= carga <= 168:
            raise invalid("funcao_carga_horaria_invalid")
        return cls(
            nome_funcao=optional_text(payload, "nome_funcao"),
            exige_cnh=optional_bool(payload, "exige_cnh"),
            carga_horaria_semanal=carga,
            situacao=optional_iso_date(payload, "situacao", "conta_date_invalid"),
        )

    def require_complete(self) -> None:
        if not _present(self.nome_funcao):
            raise invalid("funcao_name_required")


CPF_CNPJ_LENGTH = {"F": 11, "J": 14}


@dataclass(frozen=True)
class PessoaInput:
    """Person or company record shared by customers and employees."""

    tipopessoa: Any = UNSET
    nomerazao: Any = UNSET
    nomefantasia: Any = UNSET
    cpfcnpj: Any = UNSET
    rg_inscricaoestadual: Any = UNSET
    endereco: Any = UNSET
    numero: Any = UNSET
    complemento: Any = UNSET
    bairro: Any = UNSET
    cep: Any = UNSET
    codcid: Any = UNSET
    telefone: Any = UNSET
    email: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PessoaInput":
        tipopessoa = optional_text(payload, "tipopessoa", upper=True)
        if _present(tipopessoa) and tipopessoa not in CPF_CNPJ_LENGTH:
            raise invalid("tipopessoa_invalid")
        cpfcnpj = optional_text(payload, "cpfcnpj")
        if _present(cpfcnpj):
            cpfcnpj = only_digits(cpfcnpj)
            expected = {CPF_CNPJ_LENGTH[tipopessoa]} if _present(tipopessoa) else set(CPF_CNPJ_LENGTH.values())
            if len(cpfcnpj) not in expected:
                raise invalid("cpfcnpj_invalid")
        cep = optional_text(payload, "cep")
        return cls(
            tipopessoa=tipopessoa,
            nomerazao=optional_text(payload, "nomerazao"),
            nomefantasia=optional_text(payload, "nomefantasia"),
            cpfcnpj=cpfcnpj,
            rg_inscricaoestadual=optional_text(payload, "rg_inscricaoestadual"),
            endereco=optional_text(payload, "endereco"),
            numero=optional_text(payload, "numero"),
            complemento=optional_text(payload, "complemento"),
            bairro=optional_text(payload, "bairro"),
            cep=(only_digits(cep) or None) if _present(cep) else cep,
            codcid=optional_int(payload, "codcid", "cidade_invalid"),
            telefone=optional_text(payload, "telefone"),
            email=optional_text(payload, "email"),
        )

    def require_complete(self) -> None:
        if not (_present(self.tipopessoa) and _present(self.nomerazao)):
            raise invalid("pessoa_fields_required")


@dataclass(frozen=True)
class ClienteInput:
    pessoa: PessoaInput = field(default_factory=PessoaInput)
    codcondpgto: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClienteInput":
        return cls(
            pessoa=PessoaInput.from_payload(payload),
            codcondpgto=optional_int(payload, "codcondpgto", "invalid_request"),
        )

    def require_complete(self) -> None:
        self.pessoa.require_complete()


@dataclass(frozen=True)
class FuncionarioInput:
    pessoa: PessoaInput = field(default_factory=PessoaInput)
    codfuncao_fk: Any = UNSET
    cargo: Any = UNSET
    departamento: Any = UNSET
    data_admissao: Any = UNSET
    salario: Any = UNSET
    status: Any = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FuncionarioInput":
        salario = optional_number(payload, "salario", "salario_invalid")
        if _present(salario) and salario < 0:
            raise invalid("salario_invalid")
        return cls(
            pessoa=PessoaInput.from_payload(payload),
            codfuncao_fk=optional_int(payload, "codfuncao_fk", "invalid_request"),
            cargo=optional_text(payload, "cargo"),
            departamento=optional_text(payload, "departamento"),
            data_admissao=optional_iso_date(payload, "data_admissao", "conta_date_invalid"),
            salario=salario,
            status=optional_text(payload, "status"),
        )

    def require_complete(self) -> None:
        self.pessoa.require_complete()
