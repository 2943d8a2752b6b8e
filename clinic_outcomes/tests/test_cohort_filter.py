"""
Tests for the cohort filter.

Time windows are anchored to the FIXED_NOW reference instant from conftest
(2024-06-30 12:00 UTC), so cutoffs are exact.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from clinic_outcomes.models import (
    CareTargetOutcome,
    EpisodeSummary,
    IntegrityStatus,
    LeadershipFilters,
    TimeWindow,
)
from clinic_outcomes.services.cohort_filter import (
    apply_cohort_filters,
    build_source_query,
    filter_care_targets,
    filter_episodes,
    get_date_cutoff,
)


EpisodeFactory = Callable[..., EpisodeSummary]
CareTargetFactory = Callable[..., CareTargetOutcome]


class TestDateCutoff:

    @pytest.mark.parametrize('window,days', [
        (TimeWindow.THIRTY_DAYS, 30),
        (TimeWindow.NINETY_DAYS, 90),
        (TimeWindow.TWELVE_MONTHS, 365),
    ])
    def test_window_lengths(self, fixed_now: datetime, window: TimeWindow, days: int) -> None:
        assert get_date_cutoff(window, fixed_now) == fixed_now - timedelta(days=days)

    def test_all_has_no_cutoff(self, fixed_now: datetime) -> None:
        assert get_date_cutoff(TimeWindow.ALL, fixed_now) is None

    def test_accepts_string_window(self, fixed_now: datetime) -> None:
        assert get_date_cutoff('30d', fixed_now) == fixed_now - timedelta(days=30)

    def test_naive_now_treated_as_utc(self) -> None:
        cutoff = get_date_cutoff(TimeWindow.THIRTY_DAYS, datetime(2024, 3, 31))
        assert cutoff == datetime(2024, 3, 1, tzinfo=timezone.utc)


class TestTimeWindowFilter:

    @pytest.mark.parity
    def test_boundary_is_inclusive(
        self,
        fixed_now: datetime,
        make_care_target: CareTargetFactory,
    ) -> None:
        cutoff = fixed_now - timedelta(days=30)
        on_cutoff = make_care_target('ct-on', care_target_start_date=cutoff)
        day_older = make_care_target('ct-old', care_target_start_date=cutoff - timedelta(days=1))

        kept = filter_care_targets(
            [on_cutoff, day_older],
            LeadershipFilters(timeWindow=TimeWindow.THIRTY_DAYS),
            fixed_now,
        )

        assert [t.care_target_id for t in kept] == ['ct-on']

    @pytest.mark.parity
    def test_episode_boundary_is_inclusive(
        self,
        fixed_now: datetime,
        make_episode: EpisodeFactory,
    ) -> None:
        cutoff = fixed_now - timedelta(days=30)
        kept = filter_episodes(
            [
                make_episode('ep-on', episode_start_date=cutoff),
                make_episode('ep-old', episode_start_date=cutoff - timedelta(days=1)),
            ],
            LeadershipFilters(timeWindow=TimeWindow.THIRTY_DAYS),
            fixed_now,
        )
        assert [e.episode_id for e in kept] == ['ep-on']

    def test_missing_start_date_excluded_with_cutoff(
        self,
        fixed_now: datetime,
        make_episode: EpisodeFactory,
    ) -> None:
        undated = make_episode('ep-undated', episode_start_date=None)
        assert filter_episodes([undated], LeadershipFilters(timeWindow=TimeWindow.NINETY_DAYS), fixed_now) == []
        assert filter_episodes([undated], LeadershipFilters(timeWindow=TimeWindow.ALL), fixed_now) == [undated]

    def test_naive_record_dates_treated_as_utc(
        self,
        fixed_now: datetime,
        make_care_target: CareTargetFactory,
    ) -> None:
        naive_cutoff = (fixed_now - timedelta(days=30)).replace(tzinfo=None)
        target = make_care_target('ct-naive', care_target_start_date=naive_cutoff)
        kept = filter_care_targets([target], LeadershipFilters(timeWindow=TimeWindow.THIRTY_DAYS), fixed_now)
        assert kept == [target]

    def test_iso_string_dates_parsed(self, fixed_now: datetime) -> None:
        episode = EpisodeSummary.model_validate({
            'episode_id': 'ep-iso',
            'episode_start_date': '2024-06-20T08:00:00+00:00',
        })
        kept = filter_episodes([episode], LeadershipFilters(timeWindow=TimeWindow.THIRTY_DAYS), fixed_now)
        assert kept == [episode]

    @pytest.mark.parametrize('bad_date', ['', '   ', 'N/A', 'not a date'])
    def test_unparseable_dates_drop_row_from_window(self, fixed_now: datetime, bad_date: str) -> None:
        target = CareTargetOutcome.model_validate({
            'care_target_id': 'ct-bad',
            'episode_id': 'ep-1',
            'care_target_start_date': bad_date,
            'care_target_discharge_date': bad_date,
        })
        episode = EpisodeSummary.model_validate({
            'episode_id': 'ep-bad',
            'episode_start_date': bad_date,
            'episode_close_date': bad_date,
        })

        assert target.care_target_start_date is None
        assert episode.episode_start_date is None

        bounded = LeadershipFilters(timeWindow=TimeWindow.NINETY_DAYS, includeOverrides=True)
        assert filter_care_targets([target], bounded, fixed_now) == []
        assert filter_episodes([episode], bounded, fixed_now) == []

        unbounded = LeadershipFilters(timeWindow=TimeWindow.ALL, includeOverrides=True)
        assert filter_care_targets([target], unbounded, fixed_now) == [target]
        assert filter_episodes([episode], unbounded, fixed_now) == [episode]


class TestAttributeFilters:

    def test_domain_and_body_region_exact_match(
        self,
        fixed_now: datetime,
        make_care_target: CareTargetFactory,
    ) -> None:
        targets = [
            make_care_target('ct-1', domain='MSK', body_region='Lumbar'),
            make_care_target('ct-2', domain='MSK', body_region='Knee'),
            make_care_target('ct-3', domain='Neuro', body_region='Lumbar'),
            make_care_target('ct-4', domain='msk', body_region='Lumbar'),
        ]
        kept = filter_care_targets(
            targets,
            LeadershipFilters(domain='MSK', bodyRegion='Lumbar'),
            fixed_now,
        )
        assert [t.care_target_id for t in kept] == ['ct-1']

    def test_domain_does_not_filter_episodes(
        self,
        fixed_now: datetime,
        make_episode: EpisodeFactory,
    ) -> None:
        episodes = [make_episode('ep-1'), make_episode('ep-2')]
        assert filter_episodes(episodes, LeadershipFilters(domain='Neuro'), fixed_now) == episodes

    def test_clinician_filter(
        self,
        fixed_now: datetime,
        make_episode: EpisodeFactory,
        make_care_target: CareTargetFactory,
    ) -> None:
        filters = LeadershipFilters(clinicianId='clin-1')

        episodes = filter_episodes(
            [
                make_episode('ep-mine', clinician_id='clin-1'),
                make_episode('ep-other', clinician_id='clin-2'),
                make_episode('ep-unscoped', clinician_id=None),
            ],
            filters,
            fixed_now,
        )
        targets = filter_care_targets(
            [
                make_care_target('ct-mine', clinician_id='clin-1'),
                make_care_target('ct-other', clinician_id='clin-2'),
            ],
            filters,
            fixed_now,
        )

        assert [e.episode_id for e in episodes] == ['ep-mine', 'ep-unscoped']
        assert [t.care_target_id for t in targets] == ['ct-mine']


class TestIntegrityFilter:

    @pytest.mark.parametrize('status,kept', [
        ('complete', True),
        ('COMPLETE', True),
        ('override', False),
        ('incomplete', False),
        (None, False),
    ])
    def test_complete_only_without_overrides(
        self,
        fixed_now: datetime,
        make_care_target: CareTargetFactory,
        status,
        kept: bool,
    ) -> None:
        target = make_care_target('ct-1', outcome_integrity_status=status)
        result = filter_care_targets([target], LeadershipFilters(includeOverrides=False), fixed_now)
        assert (result == [target]) is kept

    def test_include_overrides_keeps_every_status(
        self,
        fixed_now: datetime,
        make_care_target: CareTargetFactory,
    ) -> None:
        targets = [
            make_care_target('ct-1', outcome_integrity_status='complete'),
            make_care_target('ct-2', outcome_integrity_status='override'),
            make_care_target('ct-3', outcome_integrity_status='incomplete'),
        ]
        kept = filter_care_targets(targets, LeadershipFilters(includeOverrides=True), fixed_now)
        assert kept == targets

    def test_apply_filters_both_collections(self, fixed_now: datetime, mixed_integrity_cohort) -> None:
        cohort = apply_cohort_filters(
            mixed_integrity_cohort['episodes'],
            mixed_integrity_cohort['care_targets'],
            LeadershipFilters(),
            fixed_now,
        )
        assert len(cohort.episodes) == 2
        assert [t.care_target_id for t in cohort.care_targets] == ['ct-complete-1', 'ct-complete-2']


class TestSourceQuery:

    def test_complete_only_hint_without_overrides(self) -> None:
        query = build_source_query(LeadershipFilters(clinicianId='clin-1', domain='MSK'))
        assert query.clinician_id == 'clin-1'
        assert query.domain == 'MSK'
        assert query.integrity_status == IntegrityStatus.COMPLETE

    def test_no_integrity_hint_with_overrides(self) -> None:
        query = build_source_query(LeadershipFilters(includeOverrides=True))
        assert query.integrity_status is None
        assert query.clinician_id is None
