from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from sistema_nfe.db import get_db
from sistema_nfe.domain.contracts import (
    ContaKey,
    ContasCreateInput,
    ContasFilter,
    PagamentoInput,
    ProdutoFornecedorInput,
    QueryResult,
    VeiculoInput,
)
from sistema_nfe.errors import NotFoundError, ValidationError
from sistema_nfe.infrastructure.repositories.base import BaseRepository
from sistema_nfe.infrastructure.repositories.cadastros import (
    CategoriaRepository,
    CidadeRepository,
    ClienteRepository,
    CondicaoPagamentoRepository,
    ContaRepository,
    EstadoRepository,
    FormaPagamentoRepository,
    FornecedorRepository,
    FuncaoFuncionarioRepository,
    FuncionarioRepository,
    MarcaRepository,
    PaisRepository,
    ProdutoRepository,
    TransportadoraRepository,
    UnidadeMedidaRepository,
)
from sistema_nfe.ui_strings import (
    deleted_message,
    id_invalid_message,
    id_required_message,
    not_found_message,
    operation_failed_message,
    success_message,
)


SEARCH_PAGE_SIZE = 10

logger = logging.getLogger(__name__)


class CadastroService:
    """Boundary of the data-access layer.

    Every public method returns a :class:`QueryResult`. Input is validated
    before a connection is checked out, so a bad request never reaches the
    store. Anything other than a validation or not-found outcome is logged
    with the Portuguese name of the failing operation and reported as a
    store error carrying only that stable message.
    """

    def __init__(
        self,
        db_provider: Callable[[], Any] | None = None,
        search_page_size: int = SEARCH_PAGE_SIZE,
    ) -> None:
        self._db_provider = db_provider or get_db
        self.search_page_size = int(search_page_size)
        self.paises = PaisRepository()
        self.estados = EstadoRepository()
        self.cidades = CidadeRepository()
        self.produtos = ProdutoRepository()
        self.fornecedores = FornecedorRepository()
        self.transportadoras = TransportadoraRepository()
        self.formas_pagamento = FormaPagamentoRepository()
        self.condicoes_pagamento = CondicaoPagamentoRepository()
        self.marcas = MarcaRepository()
        self.categorias = CategoriaRepository()
        self.unidades_medida = UnidadeMedidaRepository()
        self.clientes = ClienteRepository()
        self.funcionarios = FuncionarioRepository()
        self.funcoes_funcionario = FuncaoFuncionarioRepository()
        self.contas = ContaRepository()
        self._repositories: Dict[str, BaseRepository] = {
            repo.resource: repo
            for repo in (
                self.paises,
                self.estados,
                self.cidades,
                self.produtos,
                self.fornecedores,
                self.transportadoras,
                self.formas_pagamento,
                self.condicoes_pagamento,
                self.marcas,
                self.categorias,
                self.unidades_medida,
                self.clientes,
                self.funcionarios,
                self.funcoes_funcionario,
            )
        }

    @property
    def resources(self) -> tuple[str, ...]:
        return tuple(self._repositories)

    def repository(self, resource: str) -> BaseRepository:
        return self._repositories[resource]

    def _run(
        self,
        resource: str,
        operation: str,
        action: Callable[[Any, Any], Any],
        *,
        prepare: Callable[[], Any] | None = None,
        status_code: int = 200,
        commit: bool = False,
    ) -> QueryResult:
        db = None
        try:
            prepared = prepare() if prepare is not None else None
            db = self._db_provider()
            if commit:
                db.begin()
            payload = action(db, prepared)
            if commit:
                db.commit()
            return QueryResult.success(payload, status_code)
        except (ValidationError, NotFoundError) as exc:
            self._rollback(db, resource, operation)
            return QueryResult.from_app_error(exc)
        except Exception:
            self._rollback(db, resource, operation)
            message = operation_failed_message(resource, operation)
            logger.exception(message, extra={"resource": resource, "operation": operation})
            return QueryResult.store_failure(message)

    @staticmethod
    def _rollback(db, resource: str, operation: str) -> None:
        if db is None:
            return
        try:
            db.rollback()
        except Exception:
            logger.warning(
                "Falha ao desfazer a transação", exc_info=True, extra={"resource": resource, "operation": operation}
            )

    def _parse_id(self, resource: str, raw_id: Any) -> Any:
        text = str(raw_id if raw_id is not None else "").strip()
        if not text:
            raise ValidationError(message=id_required_message(resource))
        if self._repositories.get(resource) is not None and self.repository(resource).id_kind == "code":
            return text.upper()
        try:
            return int(text)
        except ValueError as exc:
            raise ValidationError(message=id_invalid_message(resource)) from exc

    @staticmethod
    def _body(payload: Any) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping):
            raise ValidationError(message_key="invalid_json")
        return payload

    # cadastros

    def list_records(self, resource: str) -> QueryResult:
        repo = self.repository(resource)
        return self._run(resource, "list", lambda db, _: repo.list_all(db))

    def search(self, resource: str, term: str | None) -> QueryResult:
        repo = self.repository(resource)

        def prepare() -> str:
            cleaned = str(term or "").strip()
            if not cleaned:
                raise ValidationError(message_key="search_term_required")
            return cleaned

        def action(db, cleaned: str) -> list:
            return [suggestion.to_dict() for suggestion in repo.search(db, cleaned, self.search_page_size)]

        return self._run(resource, "search", action, prepare=prepare)

    def get_record(self, resource: str, raw_id: Any) -> QueryResult:
        repo = self.repository(resource)

        def action(db, record_id):
            record = repo.get_by_id(db, record_id)
            if record is None:
                raise NotFoundError(message=not_found_message(resource))
            return record

        return self._run(resource, "get", action, prepare=lambda: self._parse_id(resource, raw_id))

    def create_record(self, resource: str, payload: Any) -> QueryResult:
        repo = self.repository(resource)
        return self._run(
            resource,
            "create",
            lambda db, data: repo.create(db, data),
            prepare=lambda: repo.input_type.from_payload(self._body(payload)),
            status_code=201,
            commit=True,
        )

    def update_record(self, resource: str, raw_id: Any, payload: Any) -> QueryResult:
        repo = self.repository(resource)

        def prepare():
            return self._parse_id(resource, raw_id), repo.input_type.from_payload(self._body(payload))

        return self._run(
            resource,
            "update",
            lambda db, prepared: repo.update(db, *prepared),
            prepare=prepare,
            commit=True,
        )

    def delete_record(self, resource: str, raw_id: Any) -> QueryResult:
        repo = self.repository(resource)

        def action(db, record_id) -> dict:
            repo.delete(db, record_id)
            return {"message": deleted_message(resource)}

        return self._run(
            resource,
            "delete",
            action,
            prepare=lambda: self._parse_id(resource, raw_id),
            commit=True,
        )

    def list_cidades_do_estado(self, raw_id: Any) -> QueryResult:
        return self._run(
            "cidades",
            "list",
            lambda db, codest: self.estados.list_cidades(db, codest),
            prepare=lambda: self._parse_id("estados", raw_id),
        )

    # associations

    def list_produto_fornecedores(self, raw_id: Any) -> QueryResult:
        return self._run(
            "fornecedores",
            "list",
            lambda db, codprod: self.produtos.list_fornecedores(db, codprod),
            prepare=lambda: self._parse_id("produtos", raw_id),
        )

    def link_produto_fornecedor(self, raw_id: Any, payload: Any) -> QueryResult:
        def prepare():
            return self._parse_id("produtos", raw_id), ProdutoFornecedorInput.from_payload(self._body(payload))

        return self._run(
            "fornecedores",
            "link",
            lambda db, prepared: self.produtos.link_fornecedor(db, *prepared),
            prepare=prepare,
            status_code=201,
            commit=True,
        )

    def unlink_produto_fornecedor(self, raw_id: Any, raw_codforn: Any) -> QueryResult:
        def action(db, prepared) -> dict:
            self.produtos.unlink_fornecedor(db, *prepared)
            return {"message": success_message("link_removed")}

        return self._run(
            "fornecedores",
            "unlink",
            action,
            prepare=lambda: (self._parse_id("produtos", raw_id), self._parse_id("fornecedores", raw_codforn)),
            commit=True,
        )

    def link_transportadora_fornecedor(self, raw_id: Any, payload: Any) -> QueryResult:
        def prepare():
            body = self._body(payload)
            return self._parse_id("transportadoras", raw_id), self._parse_id("fornecedores", body.get("codforn"))

        return self._run(
            "fornecedores",
            "link",
            lambda db, prepared: self.transportadoras.link_fornecedor(db, *prepared),
            prepare=prepare,
            status_code=201,
            commit=True,
        )

    def unlink_transportadora_fornecedor(self, raw_id: Any, raw_codforn: Any) -> QueryResult:
        def action(db, prepared) -> dict:
            self.transportadoras.unlink_fornecedor(db, *prepared)
            return {"message": success_message("link_removed")}

        return self._run(
            "fornecedores",
            "unlink",
            action,
            prepare=lambda: (self._parse_id("transportadoras", raw_id), self._parse_id("fornecedores", raw_codforn)),
            commit=True,
        )

    def link_transportadora_veiculo(self, raw_id: Any, payload: Any) -> QueryResult:
        def prepare():
            return self._parse_id("transportadoras", raw_id), VeiculoInput.from_payload(self._body(payload))

        return self._run(
            "veiculos",
            "link",
            lambda db, prepared: self.transportadoras.link_veiculo(db, *prepared),
            prepare=prepare,
            status_code=201,
            commit=True,
        )

    def unlink_transportadora_veiculo(self, raw_id: Any, raw_codveiculo: Any) -> QueryResult:
        def action(db, prepared) -> dict:
            self.transportadoras.unlink_veiculo(db, *prepared)
            return {"message": success_message("link_removed")}

        return self._run(
            "veiculos",
            "unlink",
            action,
            prepare=lambda: (self._parse_id("transportadoras", raw_id), self._parse_id("veiculos", raw_codveiculo)),
            commit=True,
        )

    # contas a pagar / receber

    def list_contas(self, args: Mapping[str, Any]) -> QueryResult:
        return self._run(
            "contas",
            "list",
            lambda db, filters: self.contas.list_filtered(db, filters),
            prepare=lambda: ContasFilter.from_args(args),
        )

    def create_contas(self, payload: Any) -> QueryResult:
        return self._run(
            "contas",
            "installments",
            lambda db, data: self.contas.create_installments(db, data),
            prepare=lambda: ContasCreateInput.from_payload(self._body(payload)),
            status_code=201,
            commit=True,
        )

    def register_payment(self, payload: Any) -> QueryResult:
        return self._run(
            "contas",
            "pay",
            lambda db, data: self.contas.register_payment(db, data),
            prepare=lambda: PagamentoInput.from_payload(self._body(payload)),
            commit=True,
        )

    def delete_conta(self, args: Mapping[str, Any]) -> QueryResult:
        def action(db, key: ContaKey) -> dict:
            self.contas.delete_unpaid(db, key)
            return {"message": deleted_message("contas")}

        return self._run(
            "contas",
            "delete",
            action,
            prepare=lambda: ContaKey.from_mapping(args),
            commit=True,
        )
