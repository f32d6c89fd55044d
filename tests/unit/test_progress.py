from __future__ import annotations

from unittest.mock import Mock, patch

from allocation_validator.services.progress import ValidationProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True

    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestValidationProgress:
    """Progress bar over the validators of one pass."""

    def test_init_with_tty_enabled(self):
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=True), patch(
            "allocation_validator.services.progress.tqdm"
        ) as mock_tqdm:
            progress = ValidationProgress(13)

            assert progress.total == 13
            assert progress.current == 0
            assert progress.enabled is True
            mock_tqdm.assert_called_once_with(
                total=13,
                desc="Validating",
                unit="validator",
                leave=False,
                ncols=80,
                ascii=True,
            )

    def test_init_without_tty(self):
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=False), patch(
            "allocation_validator.services.progress.tqdm"
        ) as mock_tqdm:
            progress = ValidationProgress(13)

            assert progress.enabled is False
            assert progress.pbar is None
            mock_tqdm.assert_not_called()

    def test_caller_opt_out(self):
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=True), patch(
            "allocation_validator.services.progress.tqdm"
        ) as mock_tqdm:
            progress = ValidationProgress(3, enabled=False)

            assert progress.enabled is False
            mock_tqdm.assert_not_called()

    def test_start_and_finish_update_bar(self):
        mock_pbar = Mock()
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=True), patch(
            "allocation_validator.services.progress.tqdm", return_value=mock_pbar
        ):
            progress = ValidationProgress(2)
            progress.start("JSONValidator")
            progress.finish(issues=3)

            assert progress.current == 1
            mock_pbar.set_description.assert_any_call("Validating (JSONValidator)")
            mock_pbar.update.assert_called_once_with(1)
            mock_pbar.set_postfix.assert_called_once_with(issues=3)

    def test_finish_without_issues_skips_postfix(self):
        mock_pbar = Mock()
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=True), patch(
            "allocation_validator.services.progress.tqdm", return_value=mock_pbar
        ):
            progress = ValidationProgress(1)
            progress.start("RangeValidator")
            progress.finish()

            mock_pbar.set_postfix.assert_not_called()

    def test_disabled_progress_still_counts(self):
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=False):
            progress = ValidationProgress(2)
            progress.start("A")
            progress.finish(issues=1)
            progress.start("B")

            assert progress.current == 2

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch("allocation_validator.services.progress.is_tty_enabled", return_value=True), patch(
            "allocation_validator.services.progress.tqdm", return_value=mock_pbar
        ):
            with ValidationProgress(1) as progress:
                progress.start("A")

            mock_pbar.close.assert_called_once()
            assert progress.pbar is None

            # closing twice is harmless
            progress.close()
            mock_pbar.close.assert_called_once()
