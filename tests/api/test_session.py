"""
Unit tests for SessionManager.
"""

from tutorbook.api.session import SessionManager, SessionState


class TestSessionManager:
    """Test suite for SessionManager."""

    def test_initial_state(self):
        """Test initial session state."""
        session = SessionManager()

        assert session.state == SessionState.UNKNOWN
        assert session.csrf_token is None
        assert session.last_activity is None
        assert not session.is_unauthorized

    def test_csrf_header_for_unsafe_methods(self):
        """Test header is attached to state-changing methods only."""
        session = SessionManager()
        session.set_csrf_token("abc123")

        for method in ("POST", "put", "PATCH", "DELETE"):
            assert session.csrf_header(method) == {"X-CSRF-Token": "abc123"}
        for method in ("GET", "head", "OPTIONS"):
            assert session.csrf_header(method) == {}

    def test_no_token_no_header(self):
        """Test no header without a token."""
        assert SessionManager().csrf_header("POST") == {}

    def test_empty_token_ignored(self):
        """Test empty values do not replace the token."""
        session = SessionManager()
        session.set_csrf_token("abc123")
        session.set_csrf_token("")
        session.set_csrf_token(None)

        assert session.csrf_token == "abc123"

    def test_mark_active(self):
        """Test a successful request marks the session active."""
        session = SessionManager()
        session.mark_active()

        assert session.state == SessionState.ACTIVE
        assert session.last_activity is not None

    def test_mark_unauthorized_drops_token(self):
        """Test 401 clears the CSRF token."""
        session = SessionManager()
        session.set_csrf_token("abc123")

        session.mark_unauthorized()

        assert session.is_unauthorized
        assert session.csrf_token is None

    def test_clear_csrf_token(self):
        """Test clearing the token."""
        session = SessionManager()
        session.set_csrf_token("abc123")
        session.clear_csrf_token()

        assert session.csrf_token is None
