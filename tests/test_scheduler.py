"""Tests for the retention job scheduler."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from volunteerhub import create_app
from volunteerhub.triggers import scheduler as scheduler_module


class TestScheduler(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app({"TESTING": True, "MESSAGE_RETENTION_DAYS": 14})
        scheduler_module.scheduler = None
        self.addCleanup(setattr, scheduler_module, "scheduler", None)

    @patch("volunteerhub.triggers.scheduler.atexit")
    @patch("volunteerhub.triggers.scheduler.BackgroundScheduler")
    def test_daily_job_is_registered_once(
        self, mock_scheduler_cls: MagicMock, mock_atexit: MagicMock
    ) -> None:
        first = scheduler_module.init_scheduler(self.app)
        second = scheduler_module.init_scheduler(self.app)

        self.assertIs(first, second)
        mock_scheduler_cls.assert_called_once()
        instance = mock_scheduler_cls.return_value
        job = instance.add_job.call_args.kwargs
        self.assertEqual(job["id"], "purge_stale_messages")
        self.assertEqual(job["args"], [self.app])
        self.assertEqual(str(job["trigger"].fields[5]), "3")
        instance.start.assert_called_once()
        mock_atexit.register.assert_called_once_with(scheduler_module.shutdown_scheduler)

    @patch("volunteerhub.triggers.scheduler.firestore")
    @patch("volunteerhub.triggers.scheduler.purge_stale_messages")
    def test_job_uses_configured_window(
        self, mock_purge: MagicMock, mock_firestore: MagicMock
    ) -> None:
        scheduler_module.run_retention_job(self.app)

        mock_purge.assert_called_once_with(
            mock_firestore.client.return_value, retention_days=14
        )


if __name__ == "__main__":
    unittest.main()
