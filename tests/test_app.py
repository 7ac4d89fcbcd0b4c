"""Tests for tern.app — registration, lifecycle, and end-to-end dispatch."""

import logging

import pytest

from tern import App, AppConfig
from tern.errors import HTTPError
from tern.testing import TestClient


class TestRegistration:
    def test_use_returns_app(self) -> None:
        app = App()

        async def mw(ctx, next):
            await next()

        assert app.use(mw) is app
        assert app.middleware == (mw,)

    def test_use_rejects_non_callable(self) -> None:
        app = App()
        with pytest.raises(TypeError, match="Middleware must be a function"):
            app.use("not a function")  # type: ignore[arg-type]

    def test_decorator_returns_handler(self) -> None:
        app = App()

        @app.get("/")
        async def index(ctx, next):
            pass

        assert callable(index)
        assert len(app.router) == 1
        assert app.router.routes[0].method == "GET"

    def test_direct_registration(self) -> None:
        app = App()

        def handler(ctx, next):
            pass

        assert app.post("/items", handler) is handler
        assert app.router.routes[0].method == "POST"

    def test_verb_shortcuts(self) -> None:
        app = App()

        def handler(ctx, next):
            pass

        app.all("/a", handler)
        app.put("/b", handler)
        app.delete("/c", handler)
        app.head("/d", handler)
        app.options("/e", handler)
        app.patch("/f", handler)

        methods = [route.method for route in app.router.routes]
        assert methods == ["", "PUT", "DELETE", "HEAD", "OPTIONS", "PATCH"]

    def test_route_handler_must_be_callable(self) -> None:
        app = App()
        with pytest.raises(TypeError):
            app.get("/", 42)  # type: ignore[arg-type]

    def test_registration_after_freeze_raises(self) -> None:
        app = App()
        app._ensure_frozen()

        assert app.frozen is True
        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.get("/late", lambda ctx, next: None)
        with pytest.raises(RuntimeError):
            app.use(lambda ctx, next: None)

    def test_pipeline_ends_with_route_lookup(self) -> None:
        app = App()

        async def mw(ctx, next):
            await next()

        app.use(mw)
        pipeline = app.pipeline

        assert len(pipeline) == 2
        assert pipeline.middleware[0] is mw
        assert "RouteLookup" in repr(pipeline)

    def test_default_config(self) -> None:
        assert App().config.port == 3000


class TestDispatch:
    async def test_route_with_params(self) -> None:
        app = App()

        @app.get("/users/:id")
        async def show(ctx, next):
            ctx.body = {"id": ctx.params["id"]}

        async with TestClient(app) as client:
            response = await client.get("/users/42")

        assert response.status == 200
        assert response.json() == {"id": "42"}

    async def test_param_keeps_percent_sequence(self) -> None:
        app = App()

        @app.get("/files/:name")
        def show(ctx, next):
            ctx.body = ctx.params["name"]

        async with TestClient(app) as client:
            response = await client.get("/files/a%20b")

        assert response.text == "a%20b"

    async def test_wrong_method_is_404(self) -> None:
        app = App()
        app.get("/users/:id", lambda ctx, next: None)

        async with TestClient(app) as client:
            response = await client.post("/users/42")

        assert response.status == 404
        assert response.text == "Not Found"

    async def test_extra_segment_is_404(self) -> None:
        app = App()
        app.get("/users/:id", lambda ctx, next: None)

        async with TestClient(app) as client:
            response = await client.get("/users/42/extra")

        assert response.status == 404

    async def test_first_registered_wins(self) -> None:
        app = App()

        @app.get("/users/me")
        def me(ctx, next):
            ctx.body = "me"

        @app.get("/users/:id")
        def by_id(ctx, next):
            ctx.body = "by id"

        async with TestClient(app) as client:
            response = await client.get("/users/me")

        assert response.text == "me"

    async def test_onion_order(self) -> None:
        app = App()
        log: list[str] = []

        async def outer(ctx, next):
            log.append("outer in")
            await next()
            log.append("outer out")

        def inner(ctx, next):
            log.append("inner")
            return next()

        app.use(outer).use(inner)

        @app.get("/")
        def index(ctx, next):
            log.append("handler")
            ctx.body = "ok"

        async with TestClient(app) as client:
            await client.get("/")

        assert log == ["outer in", "inner", "handler", "outer out"]

    async def test_middleware_sees_response_on_way_out(self) -> None:
        app = App()

        async def stamp(ctx, next):
            await next()
            ctx.set_header("X-Status", str(ctx.status))

        app.use(stamp)
        app.get("/", lambda ctx, next: setattr(ctx, "body", "hi"))

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.header("x-status") == "200"

    async def test_none_body_is_204(self) -> None:
        app = App()

        @app.delete("/items/:id")
        def remove(ctx, next):
            ctx.body = None

        async with TestClient(app) as client:
            response = await client.delete("/items/1")

        assert response.status == 204
        assert response.body == b""

    async def test_request_body_available(self) -> None:
        app = App()

        @app.post("/echo")
        async def echo(ctx, next):
            ctx.body = await ctx.request.body()

        async with TestClient(app) as client:
            response = await client.post("/echo", body=b"payload")

        assert response.body == b"payload"


class TestErrors:
    @pytest.mark.parametrize("is_async", [True, False])
    async def test_handler_error_becomes_500(self, is_async: bool) -> None:
        app = App()
        seen: list[Exception] = []

        if is_async:

            async def boom(ctx, next):
                raise ValueError("boom")

        else:

            def boom(ctx, next):
                raise ValueError("boom")

        app.get("/", boom)
        app.on_error(lambda exc, ctx: seen.append(exc))

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 500
        assert response.text == "boom"
        assert len(seen) == 1
        assert isinstance(seen[0], ValueError)

    async def test_http_error_status(self) -> None:
        app = App()

        @app.get("/secret")
        def secret(ctx, next):
            ctx.throw(403, "Forbidden")

        async with TestClient(app) as client:
            response = await client.get("/secret")

        assert response.status == 403
        assert response.text == "Forbidden"

    async def test_throw_without_detail_uses_status_phrase(self) -> None:
        app = App()

        @app.get("/gone")
        def gone(ctx, next):
            ctx.throw(404)

        async with TestClient(app) as client:
            response = await client.get("/gone")

        assert response.status == 404
        assert response.text == "Not Found"

    async def test_unencodable_header_reported(self) -> None:
        app = App()
        seen: list[Exception] = []
        app.on_error(lambda exc, ctx: seen.append(exc))

        @app.get("/")
        def index(ctx, next):
            ctx.set_header("X-Title", "caf\u00e9 \u2014 menu")
            ctx.body = "menu"

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 500
        assert response.header("x-title") is None
        assert len(seen) == 1
        assert isinstance(seen[0], UnicodeEncodeError)

    async def test_status_attribute_honored(self) -> None:
        class Teapot(Exception):
            status = 418

        app = App()

        @app.get("/")
        def index(ctx, next):
            raise Teapot("short and stout")

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 418
        assert response.text == "short and stout"

    async def test_empty_message_uses_default_body(self) -> None:
        app = App()

        @app.get("/")
        def index(ctx, next):
            raise RuntimeError

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.text == "Internal Server Error"

    async def test_multiple_next_reported(self) -> None:
        app = App()

        async def twice(ctx, next):
            await next()
            await next()

        app.use(twice)
        app.get("/", lambda ctx, next: None)

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 500
        assert response.text == "next() called multiple times"

    async def test_middleware_can_catch_downstream_error(self) -> None:
        app = App()

        async def recover(ctx, next):
            try:
                await next()
            except HTTPError as exc:
                ctx.status = 200
                ctx.body = f"recovered {exc.status}"

        app.use(recover)

        @app.get("/")
        def index(ctx, next):
            ctx.throw(401)

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 200
        assert response.text == "recovered 401"

    async def test_logs_without_listeners(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()

        @app.get("/")
        def index(ctx, next):
            raise ValueError("unlogged?")

        with caplog.at_level(logging.ERROR, logger="tern.server"):
            async with TestClient(app) as client:
                await client.get("/")

        assert any("500 GET /" in record.getMessage() for record in caplog.records)

    async def test_listener_suppresses_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()
        app.on_error(lambda exc, ctx: None)

        @app.get("/")
        def index(ctx, next):
            raise ValueError("quiet")

        with caplog.at_level(logging.ERROR, logger="tern.server"):
            async with TestClient(app) as client:
                await client.get("/")

        assert caplog.records == []

    async def test_debug_includes_traceback(self) -> None:
        app = App(AppConfig(debug=True))

        @app.get("/")
        def index(ctx, next):
            raise ValueError("with trace")

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.status == 500
        assert "Traceback" in response.text
        assert "ValueError: with trace" in response.text

    async def test_headers_reset_on_error(self) -> None:
        app = App()

        async def tag(ctx, next):
            ctx.set_header("X-Before", "1")
            await next()

        app.use(tag)

        @app.get("/")
        def index(ctx, next):
            raise ValueError("drop headers")

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.header("x-before") is None


class TestLifespan:
    async def test_hooks_run(self) -> None:
        app = App()
        log: list[str] = []

        @app.on_startup
        async def start():
            log.append("start")

        @app.on_shutdown
        def stop():
            log.append("stop")

        async with TestClient(app):
            assert log == ["start"]

        assert log == ["start", "stop"]

    async def test_asgi_lifespan_protocol(self) -> None:
        app = App()
        started: list[bool] = []
        app.on_startup(lambda: started.append(True))

        messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
        sent: list[dict] = []

        async def receive():
            return next(messages)

        async def send(message):
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert started == [True]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert app.frozen is True

    async def test_startup_failure_reported(self) -> None:
        app = App()

        @app.on_startup
        def start():
            raise RuntimeError("no database")

        sent: list[dict] = []

        async def receive():
            return {"type": "lifespan.startup"}

        async def send(message):
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert sent == [{"type": "lifespan.startup.failed", "message": "no database"}]


class TestShortcuts:
    async def test_serve_registers_static_middleware(self, tmp_path) -> None:
        (tmp_path / "app.css").write_text("body {}")
        app = App()
        app.serve("/assets", directory=tmp_path)

        async with TestClient(app) as client:
            response = await client.get("/assets/app.css")

        assert response.status == 200
        assert response.text == "body {}"
        assert response.content_type == "text/css"

    def test_serve_uses_config_defaults(self) -> None:
        from tern.middleware.static import StaticFiles

        app = App(AppConfig(static_url="/public", static_dir="."))
        app.serve()

        static = app.middleware[0]
        assert isinstance(static, StaticFiles)
        assert static.prefix == "/public"
