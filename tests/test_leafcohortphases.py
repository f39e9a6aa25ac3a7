import pytest

from leafcohorts.leafcohortphases import CohortPhase, CohortCount, classify_phase, count_cohorts, phase_thresholds

DURATIONS = (100.0, 200.0, 150.0, 50.0, 100.0)  # growth, lag, senescence, detachment lag, detachment


def test_phase_thresholds_are_cumulative():
    assert phase_thresholds(*DURATIONS) == (100.0, 300.0, 450.0, 500.0, 600.0)


@pytest.mark.parametrize("age, expected", [
    (0.0, CohortPhase.APPEARED),
    (50.0, CohortPhase.EXPANDING),
    (100.0, CohortPhase.FULLY_EXPANDED),
    (299.9, CohortPhase.FULLY_EXPANDED),
    (300.0, CohortPhase.SENESCING),
    (450.0, CohortPhase.DEAD),
    (550.0, CohortPhase.DEAD),
    (600.0, CohortPhase.DETACHED),
])
def test_classify_phase_from_age(age, expected):
    assert classify_phase(True, age, *DURATIONS) == expected


def test_not_appeared_is_initialised_regardless_of_age():
    assert classify_phase(False, 1000.0, *DURATIONS) == CohortPhase.INITIALISED


def test_phases_are_ordered():
    ages = [0.0, 50.0, 150.0, 350.0, 460.0, 700.0]
    phases = [classify_phase(True, age, *DURATIONS) for age in ages]
    assert phases == sorted(phases)


def test_count_categories():
    phases = [CohortPhase.INITIALISED, CohortPhase.APPEARED, CohortPhase.EXPANDING, CohortPhase.FULLY_EXPANDED,
              CohortPhase.SENESCING, CohortPhase.DEAD, CohortPhase.DETACHED]
    assert count_cohorts(phases, CohortCount.INITIALISED) == 7
    assert count_cohorts(phases, CohortCount.APPEARED) == 6
    assert count_cohorts(phases, CohortCount.EXPANDING) == 2
    assert count_cohorts(phases, CohortCount.EXPANDED) == 4
    assert count_cohorts(phases, CohortCount.GREEN) == 4
    assert count_cohorts(phases, CohortCount.SENESCING) == 1
    assert count_cohorts(phases, CohortCount.DEAD) == 2
