# delugeweb - Client for the Deluge Web UI JSON-RPC interface
# Copyright (C) 2025  Anton Larionov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import io
import json
from http.client import responses

import pytest
import requests
import urllib3


def make_response(status: int, body: bytes) -> requests.Response:
    """Build a requests.Response whose body is still to be streamed."""
    response = requests.Response()
    response.status_code = status
    response.reason = responses.get(status, "")
    response.raw = urllib3.HTTPResponse(
        body=io.BytesIO(body), status=status, preload_content=False
    )
    return response


class FakeDaemon:
    """Deluge Web UI stand-in answering requests.Session.post.

    Replies are queued per method; the last queued reply keeps being served.
    A reply is either an envelope dict, raw bytes, or an exception to raise.
    """

    def __init__(self) -> None:
        self.login_status = 200
        self.replies: dict[str, list] = {}
        self.requests: list[dict] = []

    def reply(
        self,
        method: str,
        result=None,
        code: int = 0,
        message: str = "",
    ) -> None:
        self.replies.setdefault(method, []).append(
            {"result": result, "error": {"code": code, "message": message}}
        )

    def reply_raw(self, method: str, reply) -> None:
        self.replies.setdefault(method, []).append(reply)

    def calls(self, method: str) -> list[dict]:
        return [r for r in self.requests if r["json"]["method"] == method]

    def post(self, url, **kwargs) -> requests.Response:
        self.requests.append({"url": url, **kwargs})
        payload = kwargs["json"]
        method = payload["method"]

        if method == "auth.login":
            return self._envelope(
                self.login_status,
                payload["id"],
                {"result": self.login_status == 200, "error": None},
            )

        queue = self.replies.get(method)
        if not queue:
            return self._envelope(
                200,
                payload["id"],
                {"result": None, "error": {"code": 2, "message": "Unknown"}},
            )

        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, bytes):
            return make_response(200, reply)

        return self._envelope(200, payload["id"], reply)

    def _envelope(self, status, request_id, reply) -> requests.Response:
        body = {"id": request_id, **reply}
        return make_response(status, json.dumps(body).encode())


@pytest.fixture
def daemon(monkeypatch):
    """Fake Web UI wired into every requests.Session."""
    fake = FakeDaemon()
    monkeypatch.setattr(
        requests.Session,
        "post",
        lambda session, url, **kwargs: fake.post(url, **kwargs),
    )
    return fake
