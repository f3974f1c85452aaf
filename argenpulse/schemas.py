"""Expected shapes of the upstream JSON bodies.

Bodies are validated before they reach a client's cache; anything that does
not match is reported as SchemaValidationError and handled like any other
failed fetch.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import SchemaValidationError


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


# dolarapi.com


class DolarQuotation(_Model):
    moneda: Literal["USD"]
    casa: str
    nombre: str
    compra: Optional[float] = None
    venta: float
    fecha_actualizacion: datetime = Field(alias="fechaActualizacion")


class CurrencyQuotation(_Model):
    moneda: str = Field(min_length=3, max_length=3)
    casa: str
    nombre: str
    compra: Optional[float] = None
    venta: float
    fecha_actualizacion: datetime = Field(alias="fechaActualizacion")


# argentinadatos.com


class IndexPoint(_Model):
    fecha: date
    valor: float


class HistoricalQuote(_Model):
    casa: str
    compra: Optional[float] = None
    venta: float
    fecha: date


# Ministerio del Interior - resultados electorales


class Candidato(_Model):
    candidato_id: int = Field(alias="candidatoId")
    nombre: str = Field(alias="candidatoNombre")
    apellido: str = Field(alias="candidatoApellido")
    tipo: str = Field(alias="tipoCandidato")
    orden: int = 0


class Lista(_Model):
    numero: str = Field(alias="listaNumero")
    nombre: str = Field(alias="listaNombre")
    candidatos: list[Candidato] = Field(default_factory=list)


class Agrupacion(_Model):
    agrupacion_id: int = Field(alias="agrupacionId")
    nombre: str = Field(alias="agrupacionNombre")
    color: Optional[str] = Field(default=None, alias="agrupacionColor")
    listas: list[Lista] = Field(default_factory=list)
    votos: int = Field(ge=0)
    votos_porcentaje: float = Field(alias="votosPorcentaje")


class EstadoRecuento(_Model):
    mesas_esperadas: int = Field(alias="mesasEsperadas", ge=0)
    mesas_totalizadas: int = Field(alias="mesasTotalizadas", ge=0)
    mesas_totalizadas_porcentaje: float = Field(alias="mesasTotalizadasPorcentaje")
    cantidad_electores: int = Field(alias="cantidadElectores", ge=0)
    cantidad_votantes: int = Field(alias="cantidadVotantes", ge=0)
    participacion_porcentaje: Optional[float] = Field(
        default=None, alias="participacionPorcentaje"
    )


class ValoresTotalizadosOtros(_Model):
    votos_nulos: int = Field(alias="votosNulos", ge=0)
    votos_nulos_porcentaje: Optional[float] = Field(
        default=None, alias="votosNulosPorcentaje"
    )
    votos_en_blanco: int = Field(alias="votosEnBlanco", ge=0)
    votos_en_blanco_porcentaje: Optional[float] = Field(
        default=None, alias="votosEnBlancoPorcentaje"
    )
    votos_recurridos: int = Field(alias="votosRecurridosComandoImpugnados", ge=0)
    votos_recurridos_porcentaje: Optional[float] = Field(
        default=None, alias="votosRecurridosComandoImpugnadosPorcentaje"
    )


class ElectionAPIResponse(_Model):
    fecha_totalizacion: datetime = Field(alias="fechaTotalizacion")
    anio_eleccion: Optional[int] = Field(default=None, alias="anioEleccion")
    tipo_eleccion_nombre: Optional[str] = Field(
        default=None, alias="tipoEleccionNombre"
    )
    categoria_nombre: Optional[str] = Field(default=None, alias="categoriaNombre")
    distrito_nombre: Optional[str] = Field(default=None, alias="distritoNombre")
    estado_recuento: EstadoRecuento = Field(alias="estadoRecuento")
    positivos: list[Agrupacion] = Field(alias="valoresTotalizadosPositivos")
    otros: ValoresTotalizadosOtros = Field(alias="valoresTotalizadosOtros")


DolarQuotations = list[DolarQuotation]
CurrencyQuotations = list[CurrencyQuotation]
IndexSeries = list[IndexPoint]


def _describe(exc: ValidationError, limit: int = 3) -> str:
    parts = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc or '<root>'}: {err.get('msg')}")
    extra = exc.error_count() - limit
    if extra > 0:
        parts.append(f"(+{extra} more)")
    return "; ".join(parts)


def validator_for(schema: Any) -> Callable[[Any], Any]:
    """Build a validator callable for a model or a typing construct.

    Example:
        >>> validate = validator_for(list[IndexPoint])
        >>> validate([{"fecha": "2024-01-31", "valor": 20.6}])[0].valor
        20.6
    """
    adapter = TypeAdapter(schema)

    def _validate(body: Any) -> Any:
        try:
            return adapter.validate_python(body)
        except ValidationError as exc:
            raise SchemaValidationError(_describe(exc)) from exc

    return _validate


def validate_non_empty(schema: Any) -> Callable[[Any], Any]:
    """Like validator_for, but an empty list is also a schema failure."""
    inner = validator_for(schema)

    def _validate(body: Any) -> Any:
        data = inner(body)
        if not data:
            raise SchemaValidationError("empty list")
        return data

    return _validate
