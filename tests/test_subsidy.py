"""Tests for the BBP subsidy calculation."""

import logging

import pytest

from mivivienda.data_models import ApplicantProfile
from mivivienda.exceptions import RateUnavailableError
from mivivienda.exchange import FixedRateProvider
from mivivienda.subsidy import (
    MAX_ADJUSTMENT_FACTOR,
    SubsidyCalculator,
    check_eligibility,
    classify_band,
    compute_subsidy,
    personalization_factor,
)


class TestBands:
    """Band boundaries are closed intervals in soles."""

    @pytest.mark.parametrize(
        "price, band",
        [
            (68800, "R1"),
            (98100, "R1"),
            (98101, "R2"),
            (146900, "R2"),
            (146901, "R3"),
            (244601, "R4"),
            (488800, "R5"),
        ],
    )
    def test_boundaries(self, price: float, band: str) -> None:
        assert classify_band(price) == band

    def test_out_of_range_defaults_to_r5(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="mivivienda.subsidy"):
            assert classify_band(50000) == "R5"
            assert classify_band(600000) == "R5"
        assert "outside every band" in caplog.text

    def test_usd_boundaries_use_buy_rate(self) -> None:
        # 30,000 USD at 4.0 is 120,000 PEN
        assert classify_band(30000, buy_rate=4.0) == "R2"


class TestEligibility:
    def test_income_at_ceiling_is_eligible(self) -> None:
        assert check_eligibility(ApplicantProfile(monthly_income=4746)).eligible

    def test_high_income_without_conditions(self) -> None:
        result = check_eligibility(ApplicantProfile(monthly_income=6000))
        assert not result.eligible
        assert "no special condition" in result.reason

    def test_missing_income_is_treated_as_high(self) -> None:
        assert not check_eligibility(ApplicantProfile()).eligible

    def test_special_condition_makes_eligible(self) -> None:
        result = check_eligibility(ApplicantProfile(monthly_income=9000, displaced=True))
        assert result.eligible
        assert "displaced" in result.reason


class TestPersonalization:
    def test_no_adjustment(self) -> None:
        assert personalization_factor(ApplicantProfile()) == 1.0

    def test_elderly(self) -> None:
        assert personalization_factor(ApplicantProfile(age=60)) == pytest.approx(1.05)

    def test_priority_region_is_case_insensitive(self) -> None:
        assert personalization_factor(ApplicantProfile(region="puno")) == pytest.approx(1.05)
        assert personalization_factor(ApplicantProfile(region="HUÁNUCO")) == pytest.approx(1.05)

    def test_rural_zone(self) -> None:
        assert personalization_factor(ApplicantProfile(zone="rural")) == pytest.approx(1.05)

    def test_large_household_with_minors(self) -> None:
        profile = ApplicantProfile(household_size=4, minors=2)
        assert personalization_factor(profile) == pytest.approx(1.05)

    def test_large_household_with_low_income(self) -> None:
        assert personalization_factor(
            ApplicantProfile(household_size=5, monthly_income=2000)
        ) == pytest.approx(1.05)
        assert personalization_factor(
            ApplicantProfile(household_size=5, declared_income_tier="low")
        ) == pytest.approx(1.05)

    def test_small_household_gets_nothing(self) -> None:
        assert personalization_factor(ApplicantProfile(household_size=3, minors=3)) == 1.0

    def test_multiple_special_conditions(self) -> None:
        profile = ApplicantProfile(displaced=True, disabled=True)
        assert personalization_factor(profile) == pytest.approx(1.03)

    def test_capped(self) -> None:
        profile = ApplicantProfile(
            age=70, zone="rural", household_size=4, minors=2, displaced=True, returnee=True
        )
        assert personalization_factor(profile) == MAX_ADJUSTMENT_FACTOR


class TestComputeSubsidy:
    def test_bonus_jumps_between_r1_and_r2(self, high_income_profile: ApplicantProfile) -> None:
        assert compute_subsidy(98100, "PEN", high_income_profile) == pytest.approx(27400)
        assert compute_subsidy(98101, "PEN", high_income_profile) == pytest.approx(22800)

    def test_sustainable_housing(self) -> None:
        profile = ApplicantProfile(monthly_income=6000, housing_type="Sustainable")
        assert compute_subsidy(200000, "PEN", profile) == pytest.approx(27200)

    def test_integrated_bonus_for_eligible_household(self) -> None:
        profile = ApplicantProfile(monthly_income=3000)
        assert compute_subsidy(98100, "PEN", profile) == pytest.approx(31000)

    def test_no_bonus_in_r5(self) -> None:
        profile = ApplicantProfile(monthly_income=3000)
        assert compute_subsidy(400000, "PEN", profile) == 0

    def test_elderly_adds_exactly_five_percent(self, high_income_profile: ApplicantProfile) -> None:
        elderly = ApplicantProfile(monthly_income=6000, age=65)
        base = compute_subsidy(98100, "PEN", high_income_profile)
        assert compute_subsidy(98100, "PEN", elderly) == pytest.approx(base * 1.05)

    def test_combined_adjustments_are_capped(self) -> None:
        profile = ApplicantProfile(
            monthly_income=6000,
            age=65,
            zone="rural",
            household_size=4,
            minors=2,
            displaced=True,
            disabled=True,
        )
        # Displaced makes the household eligible for the integrated bonus
        assert compute_subsidy(98100, "PEN", profile) == pytest.approx(31000 * 1.15)

    def test_usd_amounts_divided_by_buy_rate(self, high_income_profile: ApplicantProfile) -> None:
        assert compute_subsidy(30000, "USD", high_income_profile, buy_rate=4.0) == pytest.approx(5700)

    def test_buy_rate_ignored_for_pen(self, high_income_profile: ApplicantProfile) -> None:
        assert compute_subsidy(98100, "PEN", high_income_profile, buy_rate=3.7) == pytest.approx(27400)

    def test_eligibility_is_logged(
        self, high_income_profile: ApplicantProfile, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="mivivienda.subsidy"):
            compute_subsidy(98100, "PEN", high_income_profile)
        assert "BBP eligibility: not eligible" in caplog.text


class TestSubsidyCalculator:
    def test_usd_uses_provider(self, high_income_profile: ApplicantProfile) -> None:
        calculator = SubsidyCalculator(FixedRateProvider(4.0))
        assert calculator.compute(30000, "USD", high_income_profile) == pytest.approx(5700)

    def test_usd_without_provider(self, high_income_profile: ApplicantProfile) -> None:
        with pytest.raises(RateUnavailableError):
            SubsidyCalculator().compute(30000, "USD", high_income_profile)

    def test_provider_failure_propagates(self, high_income_profile, failing_provider) -> None:
        with pytest.raises(RateUnavailableError):
            SubsidyCalculator(failing_provider).compute(30000, "USD", high_income_profile)

    def test_pen_never_consults_provider(self, high_income_profile, failing_provider) -> None:
        SubsidyCalculator(failing_provider).compute(98100, "PEN", high_income_profile)
        assert failing_provider.calls == 0
