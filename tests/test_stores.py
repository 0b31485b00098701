"""Tests for the artifact stores."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from hermitcrab.cache.extract import ZSTD_MAGIC, ZSTD_READABLE
from hermitcrab.errors import ArtifactNotFound, FetchError
from hermitcrab.store import HTTPArtifactStore, LocalArtifactStore
from hermitcrab.versions import Manifest, parse

from support import site_archive


async def collect(stream) -> bytes:
    return b"".join([chunk async for chunk in stream])


@pytest.fixture
def archive_dir(tmp_path):
    root = tmp_path / "store"
    root.mkdir()
    (root / "24.1.3.tar.gz").write_bytes(site_archive("24.1.3"))
    (root / "24.1.5-beta+7.tar.gz").write_bytes(site_archive("24.1.5-beta+7"))
    (root / "ui_v24.2.0.tar.gz").write_bytes(site_archive("24.2.0"))
    (root / "notes.txt").write_text("not an archive name")
    return root


def test_archive_name_template():
    store = LocalArtifactStore("unused", archive_template="ui_v{semver}-{build}.tar.gz")
    assert store.archive_name(parse("24.1.5-beta+7")) == "ui_v24.1.5-beta-7.tar.gz"


@pytest.mark.asyncio
async def test_local_latest(archive_dir):
    store = LocalArtifactStore(archive_dir, chunk_size=128)
    assert (await store.latest()).canonical == "24.2.0"
    assert (await store.latest("24.1")).canonical == "24.1.5-beta+ui.7"
    with pytest.raises(ArtifactNotFound):
        await store.latest("25")


@pytest.mark.asyncio
async def test_local_download(archive_dir):
    store = LocalArtifactStore(archive_dir, chunk_size=128)
    data = await collect(store.download(parse("24.1.3")))
    assert data == (archive_dir / "24.1.3.tar.gz").read_bytes()


@pytest.mark.asyncio
async def test_local_download_falls_back_to_catalog_names(archive_dir):
    store = LocalArtifactStore(archive_dir)
    latest = await store.latest()
    data = await collect(store.download(latest))
    assert data == (archive_dir / "ui_v24.2.0.tar.gz").read_bytes()


@pytest.mark.asyncio
async def test_local_download_missing(archive_dir):
    store = LocalArtifactStore(archive_dir)
    with pytest.raises(ArtifactNotFound):
        await collect(store.download(parse("1.0.0")))


@pytest.mark.skipif(ZSTD_READABLE, reason="tarfile reads zstd on this Python")
@pytest.mark.asyncio
async def test_local_skips_unreadable_zstd(archive_dir):
    (archive_dir / "25.0.0.tar.zst").write_bytes(ZSTD_MAGIC + b"\x00" * 32)
    store = LocalArtifactStore(archive_dir)
    assert (await store.latest()).canonical == "24.2.0"
    with pytest.raises(ArtifactNotFound):
        await collect(store.download(parse("25.0.0")))


def remote_app(manifest: Manifest, archives) -> web.Application:
    async def get_manifest(request):
        return web.Response(text=manifest.model_dump_json(), content_type="application/json")

    async def get_archive(request):
        name = request.match_info["name"]
        if name == "broken.tar.gz":
            raise web.HTTPInternalServerError()
        if name not in archives:
            raise web.HTTPNotFound()
        return web.Response(body=archives[name])

    app = web.Application()
    app.router.add_get("/releases/manifest.json", get_manifest)
    app.router.add_get("/releases/{name}", get_archive)
    return app


@pytest.mark.asyncio
async def test_http_store():
    archives = {"1.0.0.tar.gz": site_archive("1.0.0"), "1.1.0+ui.2.tar.gz": site_archive("1.1.0")}
    manifest = Manifest(name="remote", versions=[parse("1.0.0.tar.gz"), parse("1.1.0+2.tar.gz")])

    async with TestServer(remote_app(manifest, archives)) as server:
        async with HTTPArtifactStore(str(server.make_url("/releases")), chunk_size=100) as store:
            latest = await store.latest()
            assert latest.canonical == "1.1.0+ui.2"
            assert await collect(store.download(latest)) == archives["1.1.0+ui.2.tar.gz"]
            assert (await store.latest("1.0")).canonical == "1.0.0"

            with pytest.raises(ArtifactNotFound):
                await collect(store.download(parse("9.0.0")))
            with pytest.raises(ArtifactNotFound):
                await store.latest("3")


@pytest.mark.asyncio
async def test_http_store_server_error():
    async with TestServer(remote_app(Manifest(), {})) as server:
        store = HTTPArtifactStore(str(server.make_url("/releases")), archive_template="broken.tar.gz")
        async with store:
            with pytest.raises(FetchError) as excinfo:
                await collect(store.download(parse("1.0.0")))
            assert not isinstance(excinfo.value, ArtifactNotFound)


@pytest.mark.asyncio
async def test_http_store_unreachable():
    store = HTTPArtifactStore("http://127.0.0.1:9", timeout=5)
    async with store:
        with pytest.raises(FetchError):
            await store.latest()
