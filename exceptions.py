"""
Exceptions for Slabman.

All errors are SlabError subclasses with a structured code for programmatic
handling. The subclass names the failure family, the code names the case.
"""

from typing import Any


class SlabError(Exception):
    """
    Structured exception for slab stock operations.

    Usage:
        try:
            stock.reserve(travertino, Shade.A, 5, 3, 2, client_name='Ana')
        except InsufficientStock as e:
            print(f"Faltam {e.shortfall} chapa(s)")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.data = data
        self.message = message or self._default_messages.get(code, code)
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'error': type(self).__name__,
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            },
        }


class SlabValidationError(SlabError):
    """Bad input, rejected before touching storage."""

    _default_messages = {
        'INVALID_DIMENSIONS': 'Dimensões inválidas (comprimento e largura devem ser positivos)',
        'INVALID_COUNT': 'Número de chapas inválido (deve ser inteiro positivo)',
        'INVALID_QUANTITY': 'Quantidade inválida (deve ser positiva)',
        'INVALID_GEOMETRY': 'Geometria incompleta (informe comprimento, largura e número de chapas)',
        'MISSING_FIELD': 'Campo obrigatório não informado',
        'LOT_HAS_GEOMETRY': 'Lote com geometria só pode ser consumido por reserva',
        'MATERIAL_EXISTS': 'Tipo de material já cadastrado',
        'INVALID_PRICE': 'Preço inválido (deve ser não negativo)',
    }


class NotFound(SlabError):
    """Unknown material, inactive shade, barcode mismatch or missing reservation."""

    _default_messages = {
        'MATERIAL_NOT_FOUND': 'Tipo de material não encontrado',
        'SHADE_NOT_ACTIVE': 'Tonalidade não ativa para este material',
        'BARCODE_MISMATCH': 'Código de barras não corresponde ao material/tonalidade',
        'RESERVATION_NOT_FOUND': 'Reserva não encontrada',
    }


class InsufficientStock(SlabError):
    """Not enough stock to satisfy the request. Carries the shortfall."""

    _default_messages = {
        'NO_SLAB_STOCK': 'Nenhum lote com dimensões de chapa para este material/tonalidade',
        'INSUFFICIENT_AREA': 'Área total disponível insuficiente',
        'INSUFFICIENT_SLABS': 'Chapas disponíveis insuficientes',
        'INSUFFICIENT_QUANTITY': 'Quantidade insuficiente no lote',
    }

    @property
    def shortfall(self):
        """Shortcut for data['shortfall']."""
        return self.data.get('shortfall', 0)

    @property
    def available(self) -> float:
        """Shortcut for data['available']."""
        return self.data.get('available', 0.0)

    @property
    def requested(self) -> float:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0.0)


class IllegalTransition(SlabError):
    """Reservation is not in a state that allows the operation."""

    _default_messages = {
        'INVALID_STATUS': 'Status inválido para esta operação',
    }

    @property
    def current(self) -> str | None:
        """Shortcut for data['current']."""
        return self.data.get('current')


class StorageConflict(SlabError):
    """Concurrent mutation detected. Caller may retry the whole operation."""

    _default_messages = {
        'CONCURRENT_MODIFICATION': 'Modificação concorrente detectada, tente novamente',
    }
