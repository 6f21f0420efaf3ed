"""Tests for reconciliation planning."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from media_organizer.actions import ActionType
from media_organizer.cancellation import CancellationToken
from media_organizer.exceptions import CreationTimeNotSetError, OperationCancelled
from media_organizer.executor import PlanExecutor
from media_organizer.planner import ReconciliationPlanner, build_source_index
from media_organizer.media import MediaRecord

NOV_13 = datetime(2024, 11, 13, 12, 0, 0)


@pytest.fixture
def planner(sample_config):
    return ReconciliationPlanner(sample_config)


class TestPlanScenarios:

    def test_new_file_is_copied(self, planner, source_dir, dest_dir, create_jpeg):
        create_jpeg(source_dir / 'photo.jpg', when=NOV_13)

        plan = planner.build_plan([source_dir], dest_dir)

        assert len(plan) == 1
        action = plan.actions[0]
        assert action.type is ActionType.COPY
        assert action.target_path() == dest_dir / 'photos' / '2024' / '2024-11-13' / 'sooc' / 'photo.jpg'

    def test_known_content_is_skipped(self, planner, source_dir, dest_dir, create_jpeg):
        source = create_jpeg(source_dir / 'photo.jpg', when=NOV_13, payload=b'same')
        existing = create_jpeg(dest_dir / 'photos' / '2024' / '2024-11-13' / 'sooc' / 'renamed.jpg',
                               when=NOV_13, payload=b'same')

        plan = planner.build_plan([source_dir], dest_dir)

        assert [a.type for a in plan.actions] == [ActionType.SKIP]
        assert plan.actions[0].source.path == source
        assert plan.actions[0].records[1].path == existing

    def test_zero_creation_time_fails_planning(self, planner, source_dir, dest_dir, create_mov):
        create_mov(source_dir / 'clip.mov', apple_seconds=0)

        with pytest.raises(CreationTimeNotSetError):
            planner.build_plan([source_dir], dest_dir)

    def test_move_mode_plans_moves(self, planner, source_dir, dest_dir, create_jpeg):
        create_jpeg(source_dir / 'photo.jpg', when=NOV_13)

        plan = planner.build_plan([source_dir], dest_dir, move_mode=True)

        assert plan.move_mode
        assert [a.type for a in plan.actions] == [ActionType.MOVE]


class TestDestinationChecks:

    def test_duplicate_destination_content_is_a_conflict(self, planner, source_dir, dest_dir,
                                                         create_jpeg):
        day = dest_dir / 'photos' / '2024' / '2024-11-13' / 'sooc'
        create_jpeg(day / 'a.jpg', when=NOV_13, payload=b'dup')
        create_jpeg(day / 'b.jpg', when=NOV_13, payload=b'dup')
        create_jpeg(dest_dir / 'elsewhere' / 'c.jpg', when=NOV_13, payload=b'dup')

        plan = planner.build_plan([source_dir], dest_dir)

        assert plan.has_conflicts
        conflicts = plan.actions_of(ActionType.CONFLICT)
        assert len(conflicts) == 1
        assert {r.name for r in conflicts[0].records} == {'a.jpg', 'b.jpg', 'c.jpg'}
        assert plan.actions_of(ActionType.MOVE) == []

    def test_misplaced_destination_file_is_moved(self, planner, source_dir, dest_dir, create_mov):
        create_mov(dest_dir / 'unsorted' / 'clip.mov', when=datetime(2023, 6, 1, 12))

        plan = planner.build_plan([source_dir], dest_dir)

        assert [a.type for a in plan.actions] == [ActionType.MOVE]
        assert plan.actions[0].target_path() == dest_dir / 'videos' / '2023' / '2023-06-01' / 'clip.mov'

    def test_same_name_different_content_is_a_collision(self, planner, source_dir, dest_dir,
                                                        create_jpeg):
        create_jpeg(source_dir / 'DSCF0001.JPG', when=NOV_13, payload=b'second card')
        taken = create_jpeg(dest_dir / 'photos' / '2024' / '2024-11-13' / 'sooc' / 'DSCF0001.JPG',
                            when=NOV_13, payload=b'first card')

        plan = planner.build_plan([source_dir], dest_dir)

        assert [a.type for a in plan.actions] == [ActionType.COPY]
        collisions = plan.target_collisions()
        assert list(collisions) == [taken]
        assert [r.path for r in collisions[taken]] == [source_dir / 'DSCF0001.JPG']

    def test_target_vacated_by_move_is_not_a_collision(self, planner, source_dir, dest_dir,
                                                       create_jpeg):
        sooc = dest_dir / 'photos' / '2024' / '2024-11-13' / 'sooc'
        create_jpeg(sooc / 'photo.jpg', when=datetime(2024, 11, 14, 12), payload=b'misplaced')
        create_jpeg(source_dir / 'photo.jpg', when=NOV_13, payload=b'new')

        plan = planner.build_plan([source_dir], dest_dir)

        assert [a.type for a in plan.actions] == [ActionType.MOVE, ActionType.COPY]
        assert plan.actions[1].target_path() == sooc / 'photo.jpg'
        assert plan.target_collisions() == {}

    def test_well_placed_destination_needs_nothing(self, planner, dest_dir, create_raf):
        create_raf(dest_dir / 'photos' / '2022' / '2022-03-04' / 'DSCF0001.RAF',
                   when=datetime(2022, 3, 4, 12))

        plan = planner.build_plan([], dest_dir)

        assert len(plan) == 0


class TestSourceHandling:

    def test_source_duplicates_first_path_wins(self, planner, source_dir, dest_dir, create_jpeg):
        create_jpeg(source_dir / 'b' / 'copy.jpg', when=NOV_13, payload=b'same')
        first = create_jpeg(source_dir / 'a' / 'original.jpg', when=NOV_13, payload=b'same')

        plan = planner.build_plan([source_dir], dest_dir)

        assert len(plan) == 1
        assert plan.actions[0].source.path == first
        assert plan.ignored_source_duplicates == 1

    def test_duplicates_across_sources(self, planner, tmp_path, dest_dir, create_jpeg):
        create_jpeg(tmp_path / 'card1' / 'a.jpg', when=NOV_13, payload=b'same')
        create_jpeg(tmp_path / 'card2' / 'a.jpg', when=NOV_13, payload=b'same')

        plan = planner.build_plan([tmp_path / 'card1', tmp_path / 'card2'], dest_dir)

        assert plan.counts()[ActionType.COPY] == 1
        assert plan.ignored_source_duplicates == 1

    def test_type_filter_limits_both_sides(self, planner, source_dir, dest_dir,
                                           create_jpeg, create_mov):
        create_jpeg(source_dir / 'photo.jpg', when=NOV_13)
        create_mov(source_dir / 'clip.mov')

        plan = planner.build_plan([source_dir], dest_dir, type_filter=['mov'])

        assert [a.source.kind.value for a in plan.actions] == ['mov']

    def test_plan_is_idempotent_after_apply(self, sample_config, source_dir, dest_dir,
                                            create_jpeg, create_mov, create_raf):
        create_jpeg(source_dir / 'photo.jpg', when=NOV_13)
        create_raf(source_dir / 'DSCF0001.RAF')
        create_mov(source_dir / 'clip.mov')

        plan = ReconciliationPlanner(sample_config).build_plan([source_dir], dest_dir)
        PlanExecutor(sample_config, show_progress=False).apply(plan)

        again = ReconciliationPlanner(sample_config).build_plan([source_dir], dest_dir)

        assert again.counts()[ActionType.SKIP] == 3
        assert len(again) == 3

    def test_reporter_receives_plan(self, sample_config, source_dir, dest_dir, create_jpeg):
        create_jpeg(source_dir / 'photo.jpg')
        reporter = MagicMock()

        plan = ReconciliationPlanner(sample_config, reporter=reporter).build_plan([source_dir], dest_dir)

        reporter.print_summary.assert_called_once_with(plan)


class TestCancellation:

    def test_cancelled_planning(self, sample_config, source_dir, dest_dir, create_jpeg):
        create_jpeg(source_dir / 'photo.jpg')
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled, match="plan creation interrupted"):
            ReconciliationPlanner(sample_config, token).build_plan([source_dir], dest_dir)


def test_build_source_index_keeps_first(tmp_path):
    first = MediaRecord.from_path(tmp_path / 'a.jpg')
    second = MediaRecord.from_path(tmp_path / 'b.jpg')
    first.fingerprint = second.fingerprint = "same"

    index, dropped = build_source_index([first, second])

    assert index == {"same": first}
    assert dropped == 1
