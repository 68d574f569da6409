"""
Economic assumptions and federal rule parameters.

GlobalAssumptions carries the deterministic economic inputs of a projection,
FederalRules the tax, FICA, Medicare and FEHB parameters. Defaults reflect the
2025 rule year.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .employee import TSPAllocation


class TaxBracket(BaseModel):
    """A marginal tax bracket with inclusive bounds."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(..., ge=0, description="Lower bound of the bracket")
    max: float = Field(..., gt=0, description="Upper bound of the bracket")
    rate: float = Field(..., ge=0, le=1, description="Marginal rate")


MFJ_BRACKETS_2025 = [
    TaxBracket(min=0, max=23200, rate=0.10),
    TaxBracket(min=23201, max=94300, rate=0.12),
    TaxBracket(min=94301, max=201050, rate=0.22),
    TaxBracket(min=201051, max=383900, rate=0.24),
    TaxBracket(min=383901, max=487450, rate=0.32),
    TaxBracket(min=487451, max=731200, rate=0.35),
    TaxBracket(min=731201, max=999999999, rate=0.37),
]


def halve_brackets(brackets: List[TaxBracket]) -> List[TaxBracket]:
    """Single-filer brackets approximated as half of the joint thresholds."""
    return [TaxBracket(min=b.min / 2, max=b.max / 2, rate=b.rate) for b in brackets]


class SocialSecurityTaxThresholds(BaseModel):
    """Provisional income thresholds for taxing Social Security benefits."""

    model_config = ConfigDict(frozen=True)

    married_filing_jointly_threshold_1: float = Field(default=32000.0, ge=0)
    married_filing_jointly_threshold_2: float = Field(default=44000.0, ge=0)
    single_threshold_1: float = Field(default=25000.0, ge=0)
    single_threshold_2: float = Field(default=34000.0, ge=0)


class FederalTaxConfig(BaseModel):
    """Federal income tax parameters."""

    model_config = ConfigDict(frozen=True)

    standard_deduction_mfj: float = Field(default=30000.0, ge=0)
    standard_deduction_single: float = Field(default=15000.0, ge=0)
    additional_standard_deduction: float = Field(
        default=1550.0, ge=0, description="Extra deduction per filer aged 65 or older"
    )
    tax_brackets_mfj: List[TaxBracket] = Field(default_factory=lambda: list(MFJ_BRACKETS_2025))
    tax_brackets_single: Optional[List[TaxBracket]] = Field(
        default=None, description="Single brackets; half of the joint brackets when omitted"
    )

    def brackets_for(self, filing_status: str) -> List[TaxBracket]:
        if filing_status == "single":
            return self.tax_brackets_single or halve_brackets(self.tax_brackets_mfj)
        return self.tax_brackets_mfj


class StateLocalTaxConfig(BaseModel):
    """Pennsylvania state income tax and local earned income tax."""

    model_config = ConfigDict(frozen=True)

    state_income_tax_rate: float = Field(default=0.0307, ge=0, le=1)
    local_earned_income_tax_rate: float = Field(default=0.01, ge=0, le=1)


class FICATaxConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    social_security_wage_base: float = Field(default=176100.0, gt=0)
    social_security_rate: float = Field(default=0.062, ge=0, le=1)
    medicare_rate: float = Field(default=0.0145, ge=0, le=1)
    additional_medicare_rate: float = Field(default=0.009, ge=0, le=1)
    high_income_threshold_mfj: float = Field(default=250000.0, gt=0)


class MedicareConfig(BaseModel):
    """Medicare Part B base premium and IRMAA tiers."""

    model_config = ConfigDict(frozen=True)

    base_premium_2025: float = Field(default=185.0, ge=0, description="Monthly Part B premium")
    irmaa_thresholds_joint: List[float] = Field(
        default_factory=lambda: [206000.0, 258000.0, 322000.0, 386000.0, 750000.0]
    )
    irmaa_thresholds_single: List[float] = Field(
        default_factory=lambda: [103000.0, 129000.0, 161000.0, 193000.0, 500000.0]
    )
    irmaa_surcharges: List[float] = Field(
        default_factory=lambda: [69.90, 174.70, 279.50, 384.30, 489.10],
        description="Monthly surcharge added at each tier",
    )
    premium_inflation: float = Field(
        default=0.0, ge=0, le=0.5, description="Annual growth of the Part B premium"
    )

    @model_validator(mode="after")
    def validate_tiers(self) -> "MedicareConfig":
        tiers = len(self.irmaa_surcharges)
        if len(self.irmaa_thresholds_joint) != tiers or len(self.irmaa_thresholds_single) != tiers:
            raise ValueError("IRMAA thresholds and surcharges must have the same length")
        return self


class FEHBConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    pay_periods_per_year: int = Field(default=26, gt=0)


class FederalRules(BaseModel):
    """All rule-year parameters used by the tax and benefit formulas."""

    model_config = ConfigDict(frozen=True)

    social_security_tax_thresholds: SocialSecurityTaxThresholds = Field(
        default_factory=SocialSecurityTaxThresholds
    )
    federal_tax_config: FederalTaxConfig = Field(default_factory=FederalTaxConfig)
    state_local_tax: StateLocalTaxConfig = Field(default_factory=StateLocalTaxConfig)
    fica_tax: FICATaxConfig = Field(default_factory=FICATaxConfig)
    medicare: MedicareConfig = Field(default_factory=MedicareConfig)
    fehb: FEHBConfig = Field(default_factory=FEHBConfig)


class FundStatistics(BaseModel):
    """Mean and standard deviation of a fund's annual return."""

    model_config = ConfigDict(frozen=True)

    mean: float = Field(default=0.0, description="Mean annual return")
    standard_deviation: float = Field(default=0.0, ge=0, description="Annual standard deviation")
    data_source: Optional[str] = Field(default=None, description="Where the statistics came from")

    def is_set(self) -> bool:
        return self.mean != 0 and self.standard_deviation != 0


class TSPStatisticalModels(BaseModel):
    """Optional per-fund statistics overriding the built-in fallbacks."""

    model_config = ConfigDict(frozen=True)

    c_fund: Optional[FundStatistics] = None
    s_fund: Optional[FundStatistics] = None
    i_fund: Optional[FundStatistics] = None
    f_fund: Optional[FundStatistics] = None
    g_fund: Optional[FundStatistics] = None

    def for_fund(self, fund: str) -> Optional[FundStatistics]:
        return {
            "C": self.c_fund,
            "S": self.s_fund,
            "I": self.i_fund,
            "F": self.f_fund,
            "G": self.g_fund,
        }.get(fund)


class MonteCarloSettings(BaseModel):
    """Variability and sanity bounds used by the Monte Carlo engine."""

    model_config = ConfigDict(frozen=True)

    tsp_return_variability: float = Field(default=0.15, ge=0, le=1)
    inflation_variability: float = Field(default=0.02, ge=0, le=1)
    cola_variability: float = Field(default=0.02, ge=0, le=1)
    fehb_variability: float = Field(default=0.05, ge=0, le=1)
    max_reasonable_income: float = Field(
        default=5_000_000.0, gt=0, description="Upper clamp for per-year net income metrics"
    )
    default_tsp_allocation: Optional[TSPAllocation] = Field(
        default=None, description="Allocation used to blend sampled fund returns"
    )

    def resolved_allocation(self) -> TSPAllocation:
        return self.default_tsp_allocation or TSPAllocation.default()


class GlobalAssumptions(BaseModel):
    """Deterministic economic inputs of a projection."""

    model_config = ConfigDict(frozen=True)

    inflation_rate: float = Field(default=0.025, ge=-0.10, description="General inflation")
    fehb_premium_inflation: float = Field(default=0.065, ge=0, description="FEHB premium growth")
    tsp_return_pre_retirement: float = Field(default=0.07, ge=-1.0)
    tsp_return_post_retirement: float = Field(default=0.05, ge=-1.0)
    cola_general_rate: float = Field(default=0.025, ge=0, description="Social Security COLA")
    projection_years: int = Field(default=25, ge=1, le=50)
    projection_base_year: int = Field(default=2025, ge=1900, le=2200)
    monte_carlo_settings: MonteCarloSettings = Field(default_factory=MonteCarloSettings)
    federal_rules: FederalRules = Field(default_factory=FederalRules)
    tsp_statistical_models: TSPStatisticalModels = Field(default_factory=TSPStatisticalModels)
