from .financeiro_repository import CondicaoPagamentoRepository, ContaRepository, FormaPagamentoRepository
from .localidades_repository import CidadeRepository, EstadoRepository, PaisRepository
from .lookup_repository import (
    CategoriaRepository,
    FuncaoFuncionarioRepository,
    MarcaRepository,
    UnidadeMedidaRepository,
)
from .parceiro_repository import FornecedorRepository, TransportadoraRepository
from .pessoa_repository import ClienteRepository, FuncionarioRepository
from .produto_repository import ProdutoRepository

__all__ = [
    "CategoriaRepository",
    "CidadeRepository",
    "ClienteRepository",
    "CondicaoPagamentoRepository",
    "ContaRepository",
    "EstadoRepository",
    "FormaPagamentoRepository",
    "FornecedorRepository",
    "FuncaoFuncionarioRepository",
    "FuncionarioRepository",
    "MarcaRepository",
    "PaisRepository",
    "ProdutoRepository",
    "TransportadoraRepository",
    "UnidadeMedidaRepository",
]
