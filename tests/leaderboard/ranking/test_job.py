"""Tests for leaderboard.ranking.job -- the all-categories orchestrator."""
import threading
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from leaderboard.ranking.base import CategoryProcessingError, RunInProgressError
from leaderboard.ranking.guard import RunGuard
from leaderboard.ranking.job import TopCreatorJob
from leaderboard.ranking.metrics import MetricsReader
from leaderboard.ranking.processor import CategoryProcessor


@pytest.fixture
def job(session_factory, clock):
    processor = CategoryProcessor(session_factory, MetricsReader(), clock=clock)
    return TopCreatorJob(session_factory, processor, RunGuard('top_creators'))


class FailingReader(MetricsReader):
    """Reader that raises for one category id."""

    def __init__(self, failing_category_id):
        super().__init__()
        self.failing_category_id = failing_category_id

    def read(self, session, category_id):
        if category_id == self.failing_category_id:
            raise RuntimeError('reader exploded')
        return super().read(session, category_id)


class TestCalculateTopCreators:

    def test_ranks_every_active_category(self, job, scenario_category, make_category, make_creator,
                                         stored_rows):
        travel = make_category('Travel')
        make_creator(travel, creator_id='traveller', followers=10)

        result = job.calculate_top_creators(limit=5)

        assert result.success is True
        assert result.message == 'Top creators calculated successfully'
        assert (result.total_processed, result.total_errors, result.categories_count) == (2, 0, 2)
        assert [r.score for r in stored_rows(scenario_category.category_id)] == [
            Decimal('0.9400'), Decimal('0.5500'),
        ]
        assert [r.creator_id for r in stored_rows(travel.category_id)] == ['traveller']

    def test_inactive_category_skipped(self, job, make_category, make_creator, stored_rows):
        hidden = make_category('Hidden', status=False)
        make_creator(hidden, creator_id='ghost')
        visible = make_category('Visible')

        result = job.calculate_top_creators()

        assert result.categories_count == 1
        assert stored_rows(hidden.category_id) == []
        assert stored_rows(visible.category_id) == []

    def test_category_without_creators_is_success(self, job, make_category, stored_rows):
        empty = make_category('Empty')
        result = job.calculate_top_creators()
        assert result.to_dict()['stats'] == {
            'totalProcessed': 1, 'totalErrors': 0, 'categoriesCount': 1, 'cancelled': 0,
        }
        assert stored_rows(empty.category_id) == []

    def test_failing_category_isolated(self, session_factory, clock, scenario_category,
                                       make_category, make_creator, stored_rows):
        broken = make_category('Broken')
        make_creator(broken, creator_id='x')
        # Give the broken category a prior leaderboard that must survive
        seed_job = TopCreatorJob(
            session_factory, CategoryProcessor(session_factory, MetricsReader(), clock=clock),
            RunGuard('seed'))
        seed_job.calculate_top_creators()
        prior = [(r.creator_id, r.rank_position) for r in stored_rows(broken.category_id)]
        assert prior == [('x', 1)]

        processor = CategoryProcessor(session_factory, FailingReader(broken.category_id), clock=clock)
        job = TopCreatorJob(session_factory, processor, RunGuard('top_creators'))
        result = job.calculate_top_creators()

        assert result.success is True
        assert (result.total_processed, result.total_errors, result.categories_count) == (1, 1, 2)
        assert result.errors == {broken.category_id: 'reader exploded'}
        assert [(r.creator_id, r.rank_position) for r in stored_rows(broken.category_id)] == prior

    def test_no_active_categories(self, job):
        result = job.calculate_top_creators()
        assert result.success is True
        assert result.message == 'No active categories found'
        assert result.to_dict()['stats']['categoriesCount'] == 0

    def test_rerun_without_changes_is_identical(self, job, scenario_category, stored_rows):
        job.calculate_top_creators(limit=2)
        first = [(r.creator_id, r.rank_position, r.score) for r in stored_rows(scenario_category.category_id)]
        job.calculate_top_creators(limit=2)
        second = [(r.creator_id, r.rank_position, r.score) for r in stored_rows(scenario_category.category_id)]
        assert first == second

    def test_listing_failure_propagates(self, job):
        with patch('leaderboard.ranking.job.list_active_categories',
                   side_effect=RuntimeError('connection refused')):
            with pytest.raises(RuntimeError, match='connection refused'):
                job.calculate_top_creators()
        # Guard released even though the run failed
        assert job.is_running is False

    def test_to_dict_shape(self, job, scenario_category):
        data = job.calculate_top_creators().to_dict()
        assert set(data) == {'success', 'message', 'stats', 'durationSeconds'}
        assert data['durationSeconds'] >= 0


class TestCancellation:

    def test_cancel_before_start_skips_everything(self, job, scenario_category, stored_rows):
        cancel = threading.Event()
        cancel.set()
        result = job.calculate_top_creators(cancel_event=cancel)

        assert result.cancelled == 1
        assert result.total_processed == 0
        assert 'cancelled' in result.message
        assert stored_rows(scenario_category.category_id) == []

    def test_cancel_mid_run_skips_remaining(self, session_factory):
        cancel = threading.Event()
        processor = MagicMock()
        processor.process.side_effect = lambda cid, limit, as_of=None: cancel.set()
        job = TopCreatorJob(session_factory, processor, RunGuard('top_creators'))

        with patch.object(job, '_list_category_ids', return_value=['c1', 'c2', 'c3']):
            result = job.calculate_top_creators(cancel_event=cancel)

        assert processor.process.call_count == 1
        assert (result.total_processed, result.cancelled) == (1, 2)


class TestConcurrency:

    def test_guard_rejects_overlapping_run(self, session_factory):
        entered, release = threading.Event(), threading.Event()
        processor = MagicMock()

        def slow_process(cid, limit, as_of=None):
            entered.set()
            release.wait(5)
        processor.process.side_effect = slow_process

        job = TopCreatorJob(session_factory, processor, RunGuard('top_creators'))
        with patch.object(job, '_list_category_ids', return_value=['c1']):
            worker = threading.Thread(target=job.calculate_top_creators)
            worker.start()
            assert entered.wait(5)
            try:
                assert job.is_running is True
                with pytest.raises(RunInProgressError):
                    job.calculate_top_creators()
            finally:
                release.set()
                worker.join(5)
        assert job.is_running is False

    def test_thread_pool_processes_all_categories(self, session_factory):
        seen = []
        lock = threading.Lock()
        processor = MagicMock()

        def process(cid, limit, as_of=None):
            with lock:
                seen.append((cid, threading.current_thread().name))
            if cid == 'c3':
                raise CategoryProcessingError(cid, ValueError('bad row'))
        processor.process.side_effect = process

        job = TopCreatorJob(session_factory, processor, RunGuard('top_creators'), max_workers=3)
        with patch.object(job, '_list_category_ids', return_value=['c1', 'c2', 'c3', 'c4']):
            result = job.calculate_top_creators(limit=3)

        assert sorted(cid for cid, _ in seen) == ['c1', 'c2', 'c3', 'c4']
        assert all(name.startswith('ranking') for _, name in seen)
        assert (result.total_processed, result.total_errors, result.categories_count) == (3, 1, 4)
        assert result.errors == {'c3': 'bad row'}

    def test_unexpected_processor_error_counted(self, session_factory):
        processor = MagicMock()
        processor.process.side_effect = KeyError('surprise')
        job = TopCreatorJob(session_factory, processor, RunGuard('top_creators'))
        with patch.object(job, '_list_category_ids', return_value=['c1']):
            result = job.calculate_top_creators()
        assert result.total_errors == 1
