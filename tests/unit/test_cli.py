"""
Unit tests for the command-line client.

Commands run against a container of mocks.
"""

from unittest.mock import Mock

import pandas as pd
import pytest

from tutorbook.api.bookings import BookingsAPI
from tutorbook.api.credits import CreditsAPI
from tutorbook.api.errors import APIError
from tutorbook.api.homework import HomeworkAPI
from tutorbook.api.payments import PaymentsAPI
from tutorbook.cli import main, parse_arguments
from tutorbook.models.result import Result
from tutorbook.services.autosave import AutosaverFactory
from tutorbook.services.broadcasts import BroadcastStore
from tutorbook.services.notifications import NotificationCenter
from tutorbook.services.templates import StudentPreview, TemplateApplyService, TemplatePreview
from tutorbook.utils.config import Config
from tutorbook.utils.di_container import DIContainer


class TestParseArguments:
    """Test suite for argument parsing."""

    def test_template_week_required(self):
        """Test --week is mandatory for template commands."""
        with pytest.raises(SystemExit):
            parse_arguments(["templates", "apply", "tpl-1"])

    def test_repeated_user_ids(self):
        """Test --user-id can be given several times."""
        args = parse_arguments(["broadcasts", "send", "--message", "Hi",
                                "--user-id", "u-1", "--user-id", "u-2"])

        assert args.user_ids == ["u-1", "u-2"]

    def test_log_level(self):
        """Test global log level option."""
        args = parse_arguments(["--log-level", "DEBUG", "credits", "balance"])

        assert args.log_level == "DEBUG"
        assert (args.group, args.command) == ("credits", "balance")


class TestMain:
    """Test suite for main()."""

    @pytest.fixture
    def config(self, tmp_path):
        config = Mock()
        config.log_level = "INFO"
        config.output_dir = tmp_path
        config.session_cookie = "cookie"
        config.validate.return_value = True
        return config

    @pytest.fixture
    def container(self, config):
        container = DIContainer()
        container.register(Config, lambda: config, singleton=True)
        container.register(NotificationCenter, NotificationCenter, singleton=True)
        return container

    def register(self, container, interface, instance):
        container.register(interface, lambda: instance, singleton=True)
        return instance

    def test_credits_balance(self, container, capsys):
        """Test balance is printed."""
        credits = self.register(container, CreditsAPI, Mock())
        credits.get_credits.return_value = {"balance": 5}

        assert main(["credits", "balance"], container) == 0
        assert "Balance: 5 credits" in capsys.readouterr().out

    def test_bookings_list_filters_status(self, container, capsys):
        """Test --status filters locally."""
        bookings = self.register(container, BookingsAPI, Mock())
        bookings.get_my_bookings.return_value = [
            {"id": "b-1", "status": "active", "start_time": "2025-12-01T10:00:00Z"},
            {"id": "b-2", "status": "cancelled", "start_time": "2025-12-02T10:00:00Z"},
        ]

        assert main(["bookings", "list", "--status", "cancelled"], container) == 0

        out = capsys.readouterr().out
        assert "b-2" in out
        assert "b-1" not in out

    def test_credits_history_csv(self, container, tmp_path):
        """Test history export to CSV."""
        credits = self.register(container, CreditsAPI, Mock())
        credits.get_my_history.return_value = [
            {"id": "t-1", "created_at": "2025-12-01T10:00:00Z", "amount": -1,
             "balance_after": 4, "reason": "Booking"},
        ]

        assert main(["credits", "history", "--csv"], container) == 0

        files = list((tmp_path / "exports").glob("credit_history_*.csv"))
        assert len(files) == 1
        df = pd.read_csv(files[0])
        assert list(df.columns)[:3] == ["created_at", "amount", "balance_after"]
        assert df.loc[0, "reason"] == "Booking"

    def test_credits_adjust_rejects_non_positive(self, container):
        """Test zero amount is refused."""
        credits = self.register(container, CreditsAPI, Mock())

        assert main(["credits", "add", "u-1", "0"], container) == 1
        credits.add_credits.assert_not_called()

    def test_api_error_exit_code(self, container, capsys):
        """Test APIError gives exit code 1 with the message."""
        credits = self.register(container, CreditsAPI, Mock())
        credits.get_credits.side_effect = APIError("Unauthorized", 401)

        assert main(["credits", "balance"], container) == 1
        assert "ERROR: Unauthorized" in capsys.readouterr().out

    def test_value_error_exit_code(self, container):
        """Test local validation errors give exit code 1."""
        payments = self.register(container, PaymentsAPI, Mock())
        payments.create_payment.side_effect = ValueError("credits must be between 1 and 100")

        assert main(["payments", "create", "500"], container) == 1

    def test_broadcast_send_needs_target(self, container):
        """Test a broadcast without list or users is refused."""
        store = self.register(container, BroadcastStore, Mock())

        assert main(["broadcasts", "send", "--message", "Hi"], container) == 1
        store.send_broadcast.assert_not_called()

    def test_templates_apply(self, container, tmp_path, capsys):
        """Test apply with --yes saves a JSON report."""
        preview = TemplatePreview("Autumn week", 3, "2025-12-01",
                                  students=[StudentPreview("s-1", "Anna", 3)])
        service = self.register(container, TemplateApplyService, Mock())
        service.preview.return_value = Result.success(preview)
        service.apply.return_value = Result.success({"created_lessons_count": 3})

        assert main(["templates", "apply", "tpl-1", "--week", "2025-12-03", "--yes"],
                    container) == 0

        service.apply.assert_called_once_with("tpl-1", "2025-12-03", preview=preview)
        out = capsys.readouterr().out
        assert "[1/2]" in out and "[2/2]" in out
        assert "Lessons created: 3" in out
        assert len(list((tmp_path / "exports").glob("template_apply_*.json"))) == 1

    def test_templates_apply_declined(self, container, monkeypatch):
        """Test answering no skips the apply."""
        preview = TemplatePreview("Autumn week", 1, "2025-12-01")
        service = self.register(container, TemplateApplyService, Mock())
        service.preview.return_value = Result.success(preview)
        monkeypatch.setattr("builtins.input", lambda _: "n")

        assert main(["templates", "apply", "tpl-1", "--week", "2025-12-01"], container) == 0
        service.apply.assert_not_called()

    def test_notifications_printed(self, container, capsys):
        """Test service notifications reach stdout."""
        store = self.register(container, BroadcastStore, Mock())

        def cancel(broadcast_id):
            container.resolve(NotificationCenter).success("Broadcast cancelled")

        store.cancel_broadcast.side_effect = cancel

        assert main(["broadcasts", "cancel", "br-1"], container) == 0
        assert "✓ Broadcast cancelled" in capsys.readouterr().out
        store.close.assert_called_once()

    def test_homework_text_saved(self, container, capsys):
        """Test homework text goes through the configured autosaver."""
        homework = self.register(container, HomeworkAPI, Mock())
        self.register(container, AutosaverFactory, AutosaverFactory(delay=10, max_retries=2))

        assert main(["lessons", "homework-text", "l-1", "f-1", "Read chapter 3"],
                    container) == 0

        homework.update_homework_text.assert_called_once_with("l-1", "f-1", "Read chapter 3")
        assert "✓ Homework text saved" in capsys.readouterr().out

    def test_homework_text_validation_error(self, container):
        """Test a rejected text is not retried and exits with 1."""
        homework = self.register(container, HomeworkAPI, Mock())
        homework.update_homework_text.side_effect = APIError("Text too long", 400)
        self.register(container, AutosaverFactory, AutosaverFactory(delay=10, max_retries=3))

        assert main(["lessons", "homework-text", "l-1", "f-1", "x"], container) == 1
        homework.update_homework_text.assert_called_once()
