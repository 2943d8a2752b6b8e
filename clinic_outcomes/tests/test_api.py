"""
HTTP endpoint tests for the Clinic Outcomes API.

Synchronous route tests use fastapi.testclient.TestClient; the async tests
drive the same app through httpx.AsyncClient over ASGITransport.
"""

from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from clinic_outcomes.core.config import Settings
from clinic_outcomes.core.dependencies import get_settings_dependency
from clinic_outcomes.models import MCIDCountingMode, TimeWindow
from clinic_outcomes.tests.conftest import FIXED_NOW


pytestmark = pytest.mark.api


def _iso(days_ago: int) -> str:
    return (FIXED_NOW - timedelta(days=days_ago)).isoformat()


class TestServiceEndpoints:

    def test_health(self, client: TestClient) -> None:
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json() == {'status': 'healthy'}

    def test_root(self, client: TestClient) -> None:
        body = client.get('/').json()
        assert body['version'] == '1.0.0'
        assert body['docs'] == '/docs'


class TestInstrumentEndpoints:

    def test_list_instruments(self, client: TestClient) -> None:
        instruments = client.get('/instruments').json()['instruments']
        assert [i['code'] for i in instruments] == ['ODI', 'QUICKDASH', 'LEFS', 'NDI', 'RPQ']

    def test_get_instrument_case_insensitive(self, client: TestClient) -> None:
        response = client.get('/instruments/lefs')
        assert response.status_code == 200
        assert response.json()['totalItems'] == 20

    def test_get_reference_instrument(self, client: TestClient) -> None:
        body = client.get('/instruments/NDI').json()
        assert body['mcid'] == 5
        assert 'items' not in body

    def test_unknown_instrument_404(self, client: TestClient) -> None:
        response = client.get('/instruments/PSFS')
        assert response.status_code == 404
        assert response.json()['detail']['error'] == 'UNKNOWN_INSTRUMENT'

    def test_score(self, client: TestClient) -> None:
        responses = {str(n): 3 for n in range(1, 12)}
        response = client.post('/instruments/QUICKDASH/score', json={'responses': responses})

        assert response.status_code == 200
        body = response.json()
        assert body['instrumentCode'] == 'QUICKDASH'
        assert body['result'] == {
            'score': 50.0,
            'isValid': True,
            'answeredCount': 11,
            'interpretation': 'Moderate disability',
        }
        assert len(body['responses']) == 11

    def test_score_with_skipped_item(self, client: TestClient) -> None:
        responses = {str(n): 5 for n in range(1, 11)}
        responses['8'] = None
        body = client.post('/instruments/ODI/score', json={'responses': responses}).json()
        assert body['result']['score'] == 100.0
        assert body['result']['isValid'] is True
        assert body['responses'][7]['isSkipped'] is True

    def test_score_invalid_response_422(self, client: TestClient) -> None:
        response = client.post('/instruments/ODI/score', json={'responses': {'1': 9}})
        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'INVALID_RESPONSE'

    @pytest.mark.parametrize('answer', [True, '3'])
    def test_score_rejects_non_numeric_answer(self, client: TestClient, answer) -> None:
        response = client.post('/instruments/ODI/score', json={'responses': {'1': answer}})
        assert response.status_code == 422

    def test_score_reference_instrument_422(self, client: TestClient) -> None:
        response = client.post('/instruments/RPQ/score', json={'responses': {'1': 2}})
        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'INSTRUMENT_NOT_SCORABLE'

    def test_score_unknown_instrument_404(self, client: TestClient) -> None:
        response = client.post('/instruments/PSFS/score', json={'responses': {}})
        assert response.status_code == 404

    def test_progress(self, client: TestClient) -> None:
        records = [
            {'episode_id': 'ep-1', 'instrument_code': 'LEFS', 'score_type': 'baseline',
             'score': 40, 'recorded_at': _iso(30)},
            {'episode_id': 'ep-1', 'instrument_code': 'LEFS', 'score_type': 'discharge',
             'score': 55, 'recorded_at': _iso(0)},
        ]
        response = client.post('/instruments/LEFS/progress', json={'records': records})

        assert response.status_code == 200
        body = response.json()
        assert body['change'] == 15
        assert body['isImprovement'] is True
        assert body['badge'] == 'MCID Achieved'

    def test_progress_duplicate_baseline_422(self, client: TestClient) -> None:
        records = [
            {'episode_id': 'ep-1', 'index_type': 'ODI', 'score_type': 'baseline',
             'score': score, 'recorded_at': _iso(days)}
            for score, days in ((50, 30), (48, 29))
        ]
        response = client.post('/instruments/ODI/progress', json={'records': records})
        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'SCORE_RECORD_INVARIANT'

    def test_progress_path_mismatch_422(self, client: TestClient) -> None:
        records = [{'episode_id': 'ep-1', 'instrument_code': 'ODI', 'score_type': 'baseline',
                    'score': 50, 'recorded_at': _iso(1)}]
        response = client.post('/instruments/LEFS/progress', json={'records': records})
        assert response.status_code == 422

    def test_progress_requires_records(self, client: TestClient) -> None:
        assert client.post('/instruments/ODI/progress', json={'records': []}).status_code == 422

    def test_mcid_summary(self, client: TestClient) -> None:
        response = client.post('/instruments/mcid-summary', json={
            'baselineScores': {'ODI': 50, 'LEFS': 40},
            'dischargeScores': {'ODI': 38, 'LEFS': 55},
        })
        body = response.json()
        assert response.status_code == 200
        assert body['achievedMCID'] == 2
        assert body['successLevel'] == 'excellent'

    def test_recommendations(self, client: TestClient) -> None:
        body = client.get('/instruments/recommendations', params={'region': 'Knee'}).json()
        assert body['recommendations'][0]['instrumentCode'] == 'LEFS'

    def test_recommendations_require_region(self, client: TestClient) -> None:
        assert client.get('/instruments/recommendations').status_code == 422


class TestLeadershipEndpoint:

    @staticmethod
    def _snapshot(filters=None, now=None):
        body = {
            'episodes': [
                {'episode_id': 'ep-1', 'episode_status': 'CLOSED',
                 'episode_start_date': _iso(10), 'number_of_care_targets': 2},
                {'episode_id': 'ep-2', 'episode_status': 'ACTIVE',
                 'episode_start_date': _iso(200), 'number_of_care_targets': 1},
            ],
            'careTargets': [
                {'care_target_id': 'ct-1', 'episode_id': 'ep-1', 'domain': 'MSK',
                 'care_target_status': 'DISCHARGED', 'care_target_start_date': _iso(10),
                 'duration_to_resolution_days': 21, 'outcome_instrument': 'ODI',
                 'outcome_delta': -4, 'outcome_direction': 'improved',
                 'outcome_integrity_status': 'complete'},
                {'care_target_id': 'ct-2', 'episode_id': 'ep-1', 'domain': 'MSK',
                 'care_target_status': 'DISCHARGED', 'care_target_start_date': _iso(10),
                 'duration_to_resolution_days': 35, 'outcome_integrity_status': 'override',
                 'outcome_direction': 'improved'},
            ],
        }
        if filters is not None:
            body['filters'] = filters
        if now is not None:
            body['now'] = now
        return body

    def test_defaults_from_settings(self, client: TestClient) -> None:
        # Default window is 90d, so ep-2 (200 days old) drops out
        body = client.post('/analytics/leadership', json=self._snapshot()).json()
        assert body['volume']['episodesOpened'] == 1
        assert body['volume']['careTargetsCreated'] == 1
        assert body['integrity']['overrideCount'] == 0

    def test_explicit_filters(self, client: TestClient) -> None:
        body = client.post('/analytics/leadership', json=self._snapshot(
            filters={'timeWindow': 'all', 'includeOverrides': True},
        )).json()
        assert body['volume']['episodesOpened'] == 2
        assert body['integrity']['overrideCount'] == 1
        assert body['time']['medianDaysToResolution'] == 28

    def test_partial_filters_keep_configured_defaults(self, client: TestClient) -> None:
        # Only domain is sent; timeWindow and includeOverrides come from Settings
        body = client.post('/analytics/leadership', json=self._snapshot(
            filters={'domain': 'MSK'},
        )).json()
        assert body['volume']['episodesOpened'] == 1
        assert body['integrity']['overrideCount'] == 0

    def test_partial_filters_with_overridden_settings(self, app, client: TestClient) -> None:
        app.dependency_overrides[get_settings_dependency] = lambda: Settings(
            default_time_window=TimeWindow.ALL,
            include_overrides_by_default=True,
        )
        body = client.post('/analytics/leadership', json=self._snapshot(
            filters={'domain': 'MSK'},
        )).json()
        assert body['volume']['episodesOpened'] == 2
        assert body['integrity']['overrideCount'] == 1

    def test_explicit_filter_values_win_over_settings(self, app, client: TestClient) -> None:
        app.dependency_overrides[get_settings_dependency] = lambda: Settings(
            default_time_window=TimeWindow.ALL,
            include_overrides_by_default=True,
        )
        body = client.post('/analytics/leadership', json=self._snapshot(
            filters={'timeWindow': '90d', 'includeOverrides': False},
        )).json()
        assert body['volume']['episodesOpened'] == 1
        assert body['integrity']['overrideCount'] == 0

    def test_now_in_body_overrides_clock(self, client: TestClient) -> None:
        later = (FIXED_NOW + timedelta(days=100)).isoformat()
        body = client.post('/analytics/leadership', json=self._snapshot(
            filters={'timeWindow': '90d'}, now=later,
        )).json()
        assert body['volume']['episodesOpened'] == 0

    def test_unparseable_dates_accepted(self, client: TestClient) -> None:
        snapshot = self._snapshot(filters={'timeWindow': '90d', 'includeOverrides': True})
        snapshot['careTargets'][1]['care_target_start_date'] = 'N/A'
        snapshot['episodes'][1]['episode_start_date'] = ''

        response = client.post('/analytics/leadership', json=snapshot)

        assert response.status_code == 200
        assert response.json()['volume']['careTargetsCreated'] == 1
        assert response.json()['volume']['episodesOpened'] == 1

    def test_invalid_time_window_422(self, client: TestClient) -> None:
        response = client.post('/analytics/leadership', json=self._snapshot(filters={'timeWindow': '7d'}))
        assert response.status_code == 422

    def test_settings_override(self, app, client: TestClient) -> None:
        app.dependency_overrides[get_settings_dependency] = lambda: Settings(
            default_time_window=TimeWindow.ALL,
            include_overrides_by_default=True,
            mcid_counting_mode=MCIDCountingMode.INSTRUMENT_THRESHOLD,
        )
        body = client.post('/analytics/leadership', json=self._snapshot()).json()

        assert body['volume']['careTargetsCreated'] == 2
        assert body['outcomes']['improvedCount'] == 2
        # ODI -4 is below its MCID of 6 and ct-2 has no instrument
        assert body['outcomes']['mcidAchievedCount'] == 0

    def test_empty_snapshot(self, client: TestClient) -> None:
        body = client.post('/analytics/leadership', json={}).json()
        assert body['time']['medianDaysToResolution'] is None
        assert body['outcomes']['improvedPercentage'] == 0


class TestAsyncClient:

    @pytest.mark.asyncio
    async def test_score_over_asgi_transport(self, app) -> None:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url='http://test') as async_client:
            response = await async_client.post(
                '/instruments/LEFS/score',
                json={'responses': {str(n): 4 for n in range(1, 21)}},
            )
        assert response.status_code == 200
        assert '100% function' in response.json()['result']['interpretation']

    @pytest.mark.asyncio
    async def test_leadership_over_asgi_transport(self, app) -> None:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url='http://test') as async_client:
            response = await async_client.post('/analytics/leadership', json={
                'careTargets': [
                    {'care_target_id': 'ct-1', 'episode_id': 'ep-1',
                     'care_target_status': 'DISCHARGED', 'outcome_integrity_status': 'complete',
                     'outcome_direction': 'worsened'},
                ],
                'filters': {'timeWindow': 'all'},
            })
        body = response.json()
        assert response.status_code == 200
        assert body['outcomes']['totalWithOutcomes'] == 1
        assert body['outcomes']['improvedPercentage'] == 0
