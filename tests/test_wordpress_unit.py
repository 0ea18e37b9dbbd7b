"""Unit tests for the WordPress REST API client."""

import base64
from unittest.mock import Mock

import pytest
import requests

from wp_autopost.exceptions import (
    AuthenticationFailed,
    ConfigError,
    MissingCredentials,
    PostCreationFailed,
)
from wp_autopost.models import PostDraft, Raw, Structured
from wp_autopost.wordpress import WordPressClient, build_auth_header, content_disposition


def _api_response(status_code=200, data=None, text=None) -> Mock:
    response = Mock()
    response.status_code = status_code
    if data is not None:
        response.json.return_value = data
        response.text = str(data)
    else:
        response.json.side_effect = ValueError("Expecting value")
        response.text = text or ""
    return response


class TestBuildAuthHeaderUnit:
    """Unit tests for Basic auth header construction."""

    def test_auth_header_exactness(self):
        expected = "Basic " + base64.b64encode(b"bob:ab cd").decode("ascii")
        assert build_auth_header("bob", "ab cd") == expected

    def test_whitespace_runs_are_collapsed(self):
        assert build_auth_header("bob", "ab \t cd\n ef") == build_auth_header(
            "bob", "ab cd ef"
        )

    def test_only_inner_whitespace_is_touched(self):
        expected = "Basic " + base64.b64encode(b" bob : ab cd ").decode("ascii")
        assert build_auth_header(" bob ", " ab   cd ") == expected

    def test_missing_values(self):
        for username, password in (
            (None, "pw"),
            ("", "pw"),
            ("bob", None),
            ("bob", "   "),
        ):
            with pytest.raises(MissingCredentials):
                build_auth_header(username, password)

    def test_missing_credentials_is_a_config_error(self):
        assert issubclass(MissingCredentials, ConfigError)


class TestContentDispositionUnit:
    """Unit tests for the media upload Content-Disposition header."""

    def test_ascii_filename_is_sent_as_is(self):
        assert content_disposition("photo.png") == 'attachment; filename="photo.png"'

    def test_non_ascii_filename_gets_encoded_parameter(self):
        header = content_disposition("日本.jpg")

        assert header == (
            "attachment; filename=\"image.jpg\"; filename*=UTF-8''%E6%97%A5%E6%9C%AC.jpg"
        )
        header.encode("latin-1")

    def test_unsafe_characters_are_replaced_in_fallback(self):
        header = content_disposition('lead "photo".png')

        assert header.startswith('attachment; filename="lead_photo.png"; ')
        assert header.endswith("filename*=UTF-8''lead%20%22photo%22.png")


class TestWordPressClientUnit:
    """Unit tests for WordPressClient."""

    def setup_method(self):
        self.session = Mock()
        self.client = WordPressClient(
            "https://blog.example.com/",
            "bob",
            "ab cd",
            session=self.session,
            timeout=11,
        )

    def test_api_root(self):
        assert self.client.api_root == "https://blog.example.com/wp-json/wp/v2"

    def test_request_sends_auth_and_timeout(self):
        self.session.request.return_value = _api_response(200, {"id": 1})

        response = self.client.request("/users/me")

        args, kwargs = self.session.request.call_args
        assert args == ("GET", "https://blog.example.com/wp-json/wp/v2/users/me")
        assert kwargs["headers"]["Authorization"] == build_auth_header("bob", "ab cd")
        assert kwargs["timeout"] == 11
        assert response.success is True
        assert response.status_code == 200
        assert response.body == Structured({"id": 1})

    def test_request_returns_raw_text_when_body_is_not_json(self):
        self.session.request.return_value = _api_response(
            502, text="<html>Bad gateway</html>"
        )

        response = self.client.request("posts", method="POST", json={"title": "x"})

        assert response.success is False
        assert response.status_code == 502
        assert response.body == Raw("<html>Bad gateway</html>")
        assert response.message() == "<html>Bad gateway</html>"

    def test_success_is_independent_of_parsing(self):
        self.session.request.return_value = _api_response(200, text="OK")

        response = self.client.request("users/me")

        assert response.success is True
        assert isinstance(response.body, Raw)

    def test_request_transport_error_propagates(self):
        self.session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(requests.ConnectionError):
            self.client.request("users/me")

    def test_self_test_success(self):
        self.session.request.return_value = _api_response(
            200, {"id": 3, "name": "bob"}
        )

        assert self.client.self_test() == {"id": 3, "name": "bob"}
        args, _ = self.session.request.call_args
        assert args[1].endswith("/wp-json/wp/v2/users/me")

    def test_self_test_rejected(self):
        self.session.request.return_value = _api_response(
            401,
            {"code": "incorrect_password", "message": "The provided password is invalid"},
        )

        with pytest.raises(AuthenticationFailed) as exc_info:
            self.client.self_test()

        assert exc_info.value.status_code == 401
        assert "The provided password is invalid" in str(exc_info.value)

    def test_self_test_unreachable(self):
        self.session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(AuthenticationFailed, match="read timed out"):
            self.client.self_test()

    def test_upload_media_headers(self):
        self.session.request.return_value = _api_response(201, {"id": 9})

        self.client.upload_media(b"bytes", "photo.png", "image/png")

        args, kwargs = self.session.request.call_args
        assert args == ("POST", "https://blog.example.com/wp-json/wp/v2/media")
        assert kwargs["data"] == b"bytes"
        assert kwargs["headers"]["Content-Disposition"] == 'attachment; filename="photo.png"'
        assert kwargs["headers"]["Content-Type"] == "image/png"
        assert "Authorization" in kwargs["headers"]

    def test_create_post(self):
        self.session.request.return_value = _api_response(
            201, {"id": 101, "link": "https://blog.example.com/?p=101"}
        )
        draft = PostDraft(
            title="Hello", html_body="<p>Hi</p>", category_id=5, featured_media_id=9
        )

        post_id, link = self.client.create_post(draft)

        assert (post_id, link) == (101, "https://blog.example.com/?p=101")
        args, kwargs = self.session.request.call_args
        assert args == ("POST", "https://blog.example.com/wp-json/wp/v2/posts")
        assert kwargs["json"] == {
            "title": "Hello",
            "content": "<p>Hi</p>",
            "status": "publish",
            "categories": [5],
            "featured_media": 9,
        }

    def test_create_post_rejected(self):
        self.session.request.return_value = _api_response(
            400, {"code": "rest_invalid_param", "message": "Invalid parameter(s): categories"}
        )

        with pytest.raises(PostCreationFailed) as exc_info:
            self.client.create_post(PostDraft(title="t", html_body="b", category_id=5))

        assert exc_info.value.status_code == 400
        assert "Invalid parameter(s): categories" in str(exc_info.value)

    def test_create_post_without_id(self):
        self.session.request.return_value = _api_response(200, text="cached page")

        with pytest.raises(PostCreationFailed, match="no post id"):
            self.client.create_post(PostDraft(title="t", html_body="b", category_id=5))

    def test_client_requires_credentials(self):
        with pytest.raises(MissingCredentials):
            WordPressClient("https://blog.example.com", "", "pw", session=Mock())
