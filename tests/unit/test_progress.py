from __future__ import annotations

from unittest.mock import patch

from spr_convert.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        with patch('spr_convert.services.progress.is_tty_enabled', return_value=True), \
             patch('spr_convert.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Test states")

            assert tracker.total_states == 5
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Test states",
                unit="state",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('spr_convert.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None
            # 無効時は何もしない
            tracker.start_state("Ohio")
            tracker.finish_state()
            tracker.set_postfix(rejected=0)
            tracker.close()
            assert tracker.current_state == 1

    def test_state_updates(self):
        with patch('spr_convert.services.progress.is_tty_enabled', return_value=True), \
             patch('spr_convert.services.progress.tqdm') as mock_tqdm:
            pbar = mock_tqdm.return_value
            with ProgressTracker(2) as tracker:
                tracker.start_state("Ohio")
                pbar.set_description.assert_called_with("Converting states (Ohio)")
                tracker.finish_state()
                pbar.update.assert_called_once_with(1)
                tracker.set_postfix(rejected=1)
                pbar.set_postfix.assert_called_once_with(rejected=1)
            pbar.close.assert_called_once()
