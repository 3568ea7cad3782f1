"""API tests with real use cases over in-memory stores."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

import httpx
import pytest
from fastapi.testclient import TestClient

from application.ports.session_gate import SessionGate
from application.use_cases.auth_use_cases import (
    GetCurrentUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    RegisterUserUseCase,
)
from application.use_cases.post_use_cases import (
    CreatePostUseCase,
    GetFeedUseCase,
    GetPostImageUseCase,
    GetUserPostsUseCase,
)
from domain.exceptions import (
    InfrastructureError,
    QuotaExceededError,
    StorageUnavailableError,
    ValidationError,
)
from infrastructure.identity.in_memory_session_gate import InMemorySessionGate
from interfaces.api.main import app
from interfaces.dependencies import get_container
from tests.mocks import MockBlobStore, MockPostRepository

MAX_UPLOAD_BYTES = 1024
PASSWORD = "long-enough-password"


class SimpleContainer:
    def __init__(self, mapping: dict[type, object]) -> None:
        self._mapping = mapping

    def __getitem__(self, key: type) -> object:
        return self._mapping[key]


@dataclass
class Api:
    client: TestClient
    blob_store: MockBlobStore
    post_repository: MockPostRepository
    session_gate: InMemorySessionGate

    def sign_up(self, email: str) -> dict[str, str]:
        self.client.post("/auth/register", json={"email": email, "password": PASSWORD})
        response = self.client.post("/auth/login", json={"email": email, "password": PASSWORD})
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def upload(
        self,
        headers: dict[str, str] | None,
        data: bytes = b"\xff\xd8jpeg",
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> httpx.Response:
        return self.client.post(
            "/posts",
            files={"file": (filename, data, content_type)},
            headers=headers or {},
        )


@pytest.fixture
def api_factory() -> Iterator[Callable[..., Api]]:
    def _api(
        blob_store: MockBlobStore | None = None,
        post_repository: MockPostRepository | None = None,
    ) -> Api:
        blob_store = blob_store or MockBlobStore()
        post_repository = post_repository or MockPostRepository()
        session_gate = InMemorySessionGate(password_iterations=1_000)
        container = SimpleContainer(
            {
                SessionGate: session_gate,
                CreatePostUseCase: CreatePostUseCase(
                    post_repository,
                    blob_store,
                    max_upload_bytes=MAX_UPLOAD_BYTES,
                ),
                GetFeedUseCase: GetFeedUseCase(post_repository),
                GetUserPostsUseCase: GetUserPostsUseCase(post_repository),
                GetPostImageUseCase: GetPostImageUseCase(post_repository, blob_store),
                RegisterUserUseCase: RegisterUserUseCase(session_gate),
                LoginUseCase: LoginUseCase(session_gate),
                LogoutUseCase: LogoutUseCase(session_gate),
                GetCurrentUserUseCase: GetCurrentUserUseCase(session_gate),
            },
        )
        app.dependency_overrides[get_container] = lambda: container
        return Api(TestClient(app), blob_store, post_repository, session_gate)

    yield _api
    app.dependency_overrides.clear()


@pytest.fixture
def api(api_factory) -> Api:
    return api_factory()


def test_health(api) -> None:
    assert api.client.get("/health").json() == {"status": "healthy"}


class TestAuthRoutes:
    def test_register_login_me_logout(self, api) -> None:
        register = api.client.post(
            "/auth/register",
            json={"email": "dana@example.com", "password": PASSWORD},
        )
        assert register.status_code == 201
        assert register.json()["email"] == "dana@example.com"
        assert "userId" in register.json()

        login = api.client.post(
            "/auth/login",
            json={"email": "dana@example.com", "password": PASSWORD},
        )
        assert login.status_code == 200
        body = login.json()
        assert body["expiresAt"]
        headers = {"Authorization": f"Bearer {body['token']}"}

        me = api.client.get("/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["userId"] == register.json()["userId"]

        assert api.client.post("/auth/logout", headers=headers).status_code == 204
        assert api.client.get("/auth/me", headers=headers).status_code == 401

    def test_duplicate_registration_conflicts(self, api) -> None:
        payload = {"email": "dana@example.com", "password": PASSWORD}
        api.client.post("/auth/register", json=payload)

        response = api.client.post("/auth/register", json=payload)

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "conflict"

    def test_bad_credentials(self, api) -> None:
        response = api.client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_short_password_is_a_bad_request(self, api) -> None:
        response = api.client.post(
            "/auth/register",
            json={"email": "dana@example.com", "password": "short"},
        )

        assert response.status_code == 400


class TestCreatePostRoute:
    def test_upload_returns_camel_case_post(self, api) -> None:
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers)

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"id", "ownerId", "imageLocator", "createdAt", "updatedAt"}
        assert body["createdAt"] == body["updatedAt"]
        assert api.blob_store.exists(body["imageLocator"])

    def test_owner_is_the_session_user(self, api) -> None:
        headers = api.sign_up("erin@example.com")
        user_id = api.client.get("/auth/me", headers=headers).json()["userId"]

        response = api.upload(headers)

        assert response.json()["ownerId"] == user_id

    def test_anonymous_upload_is_rejected(self, api) -> None:
        response = api.upload(None)

        assert response.status_code == 401
        assert api.blob_store.put_called is False

    def test_unknown_token_is_rejected(self, api) -> None:
        response = api.upload({"Authorization": "Bearer not-a-session"})

        assert response.status_code == 401

    def test_non_image_is_unsupported_media(self, api) -> None:
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers, data=b"hello", filename="a.txt", content_type="text/plain")

        assert response.status_code == 415
        assert response.json()["detail"]["error"] == "invalid_media"

    def test_oversized_upload(self, api) -> None:
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers, data=b"\x00" * (MAX_UPLOAD_BYTES + 1))

        assert response.status_code == 413
        assert api.blob_store.put_called is False

    def test_storage_outage_is_retryable(self, api_factory) -> None:
        api = api_factory(blob_store=MockBlobStore(raise_on_put=StorageUnavailableError("down")))
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"

    def test_quota_exhausted(self, api_factory) -> None:
        api = api_factory(blob_store=MockBlobStore(raise_on_put=QuotaExceededError("full")))
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers)

        assert response.status_code == 507
        assert "Retry-After" not in response.headers

    def test_metadata_write_failure(self, api_factory) -> None:
        repository = MockPostRepository(raise_on_insert=InfrastructureError("mongo down"))
        api = api_factory(post_repository=repository)
        headers = api.sign_up("erin@example.com")

        response = api.upload(headers)

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "metadata_write_failed"
        assert api.client.get("/feed").json()["items"] == []


class TestFeedRoutes:
    def test_feed_pages_with_cursor(self, api) -> None:
        headers = api.sign_up("frank@example.com")
        created = [api.upload(headers, data=f"img {i}".encode()).json()["id"] for i in range(5)]

        first = api.client.get("/feed", params={"limit": 3}).json()
        second = api.client.get("/feed", params={"limit": 3, "cursor": first["nextCursor"]}).json()

        walked = [p["id"] for p in first["items"] + second["items"]]
        assert sorted(walked) == sorted(created)
        assert len(set(walked)) == 5
        assert second["nextCursor"] is None

    def test_feed_is_public(self, api) -> None:
        assert api.client.get("/feed").status_code == 200

    def test_bad_cursor_is_a_bad_request(self, api) -> None:
        response = api.client.get("/feed", params={"cursor": "%%%"})

        assert response.status_code == 400

    def test_my_posts_only_lists_own(self, api) -> None:
        mine = api.sign_up("gina@example.com")
        theirs = api.sign_up("hank@example.com")
        own_id = api.upload(mine).json()["id"]
        api.upload(theirs)

        response = api.client.get("/posts/mine", headers=mine)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["items"]] == [own_id]

    def test_my_posts_requires_session(self, api) -> None:
        assert api.client.get("/posts/mine").status_code == 401


class TestPostImageRoute:
    def test_image_bytes_are_served(self, api) -> None:
        headers = api.sign_up("ivy@example.com")
        post = api.upload(headers, data=b"\x89PNG data", filename="pic.png", content_type="image/png").json()

        response = api.client.get(f"/posts/{post['id']}/image")

        assert response.status_code == 200
        assert response.content == b"\x89PNG data"
        assert response.headers["content-type"] == "image/png"

    def test_unknown_post(self, api) -> None:
        response = api.client.get("/posts/000000000000000000000000/image")

        assert response.status_code == 404

    def test_unresolvable_locator_is_a_json_not_found(self, api_factory) -> None:
        blob_store = MockBlobStore(raise_on_get=ValidationError("Locator is not managed by this store"))
        api = api_factory(blob_store=blob_store)
        post = api.upload(api.sign_up("ivy@example.com")).json()

        response = api.client.get(f"/posts/{post['id']}/image")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

    def test_storage_outage_on_read(self, api_factory) -> None:
        api = api_factory(blob_store=MockBlobStore(raise_on_get=StorageUnavailableError("offline")))
        post = api.upload(api.sign_up("ivy@example.com")).json()

        response = api.client.get(f"/posts/{post['id']}/image")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
