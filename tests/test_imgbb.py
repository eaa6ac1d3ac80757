"""
ImgBB client against a stubbed requests.post.
"""
import pytest
import requests

from ozifin.utils.imgbb import ImgBBClient, ImageUploadError


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload or {}

    def json(self):
        return self._payload


@pytest.fixture
def captured(monkeypatch):
    calls = []

    def fake_post(url, params=None, data=None, timeout=None):
        calls.append({"url": url, "params": params, "data": data, "timeout": timeout})
        return FakeResponse(payload={"data": {"url": "https://i.ibb.co/abc/img.png"}})

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


class TestImgBBClient:

    def test_strips_data_url_prefix(self, captured):
        client = ImgBBClient(api_key="k", upload_url="https://imgbb.test/upload", timeout=5)
        url = client.upload_base64("data:image/png;base64,QUJD")

        assert url == "https://i.ibb.co/abc/img.png"
        assert captured == [{
            "url": "https://imgbb.test/upload",
            "params": {"key": "k"},
            "data": {"image": "QUJD"},
            "timeout": 5,
        }]

    def test_bytes_are_base64_encoded(self, captured):
        ImgBBClient(api_key="k").upload_bytes(b"ABC")
        assert captured[0]["data"] == {"image": "QUJD"}

    def test_missing_key(self, captured):
        with pytest.raises(ImageUploadError):
            ImgBBClient(api_key="").upload_base64("QUJD")
        assert captured == []

    def test_rejected_upload(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(status_code=400))
        with pytest.raises(ImageUploadError):
            ImgBBClient(api_key="k").upload_base64("QUJD")

    def test_network_error(self, monkeypatch):
        def boom(*args, **kwargs):
            raise requests.ConnectionError("down")

        monkeypatch.setattr(requests, "post", boom)
        with pytest.raises(ImageUploadError):
            ImgBBClient(api_key="k").upload_base64("QUJD")

    def test_upload_error_maps_to_bad_gateway(self, client, sale1_headers, monkeypatch):
        from ozifin.main import app
        from ozifin.utils.imgbb import get_image_client

        app.dependency_overrides[get_image_client] = lambda: ImgBBClient(api_key="")
        response = client.post(
            "/api/users/me/avatar",
            files={"file": ("me.png", b"x", "image/png")},
            headers=sale1_headers,
        )
        assert response.status_code == 502
        assert response.json()["detail"] == "ImgBB API key not configured"
