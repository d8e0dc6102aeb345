"""
Enumerations shared by models, validators and the import/export layer.

Values are the literal tokens used in import files (upper snake case), so
parsing a field is ``Kind(raw.strip().upper())``.
"""

from enum import Enum


class Status(str, Enum):
    """Lifecycle status carried by every record type (soft delete)."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AccountType(str, Enum):
    """Account type of a chart-of-accounts row."""

    ATIVO = "ATIVO"
    PASSIVO = "PASSIVO"
    PATRIMONIO_LIQUIDO = "PATRIMONIO_LIQUIDO"
    RECEITA = "RECEITA"
    DESPESA = "DESPESA"
    CUSTO = "CUSTO"
    RESULTADO = "RESULTADO"
    COMPENSACAO = "COMPENSACAO"
    ATIVO_RETIFICADORA = "ATIVO_RETIFICADORA"
    PASSIVO_RETIFICADORA = "PASSIVO_RETIFICADORA"


class AccountClass(str, Enum):
    """Balance-sheet / income-statement class (classe contabil)."""

    ATIVO_CIRCULANTE = "ATIVO_CIRCULANTE"
    ATIVO_NAO_CIRCULANTE = "ATIVO_NAO_CIRCULANTE"
    PASSIVO_CIRCULANTE = "PASSIVO_CIRCULANTE"
    PASSIVO_NAO_CIRCULANTE = "PASSIVO_NAO_CIRCULANTE"
    PATRIMONIO_LIQUIDO = "PATRIMONIO_LIQUIDO"
    RECEITA_BRUTA = "RECEITA_BRUTA"
    DEDUCOES_RECEITA = "DEDUCOES_RECEITA"
    CUSTOS = "CUSTOS"
    DESPESAS_OPERACIONAIS = "DESPESAS_OPERACIONAIS"
    OUTRAS_RECEITAS = "OUTRAS_RECEITAS"
    OUTRAS_DESPESAS = "OUTRAS_DESPESAS"
    RESULTADO_FINANCEIRO = "RESULTADO_FINANCEIRO"


class AccountNature(str, Enum):
    """Normal balance side (natureza da conta)."""

    DEVEDORA = "DEVEDORA"
    CREDORA = "CREDORA"


class ParameterNature(str, Enum):
    """Time-slicing of a tax parameter type."""

    GLOBAL = "GLOBAL"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"

    @property
    def is_periodic(self) -> bool:
        return self is not ParameterNature.GLOBAL


class ApportionmentKind(str, Enum):
    """Tax a fiscal adjustment is apportioned to."""

    IRPJ = "IRPJ"
    CSLL = "CSLL"


class TaxKind(str, Enum):
    """Tax an adjustment (Parte B) account applies to."""

    IRPJ = "IRPJ"
    CSLL = "CSLL"
    BOTH = "BOTH"


class RelationshipKind(str, Enum):
    """Which account(s) a fiscal adjustment points at."""

    LEDGER_ACCOUNT = "LEDGER_ACCOUNT"
    ADJUSTMENT_ACCOUNT = "ADJUSTMENT_ACCOUNT"
    BOTH = "BOTH"


class AdjustmentDirection(str, Enum):
    """Whether the adjustment adds to or excludes from taxable income."""

    ADDITION = "ADDITION"
    EXCLUSION = "EXCLUSION"
