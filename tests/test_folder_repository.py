import asyncio

import pytest
from sqlalchemy import func, select

from db.models import Folder
from doc_vault.container import build_container
from doc_vault.exception.custom_exception import NotFoundError


async def _root_count(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(
            select(func.count()).select_from(Folder).where(Folder.parent_id.is_(None))
        )


async def test_ensure_root_is_idempotent(session_factory, folders):
    async with session_factory() as session:
        first = await folders.ensure_root(session)
        second = await folders.ensure_root(session)

    assert first.id == second.id
    assert first.name == "root"
    assert first.parent_id is None
    assert await _root_count(session_factory) == 1


async def test_concurrent_ensure_root_creates_one_root(session_factory, folders):
    async def _ensure():
        async with session_factory() as session:
            return (await folders.ensure_root(session)).id

    ids = await asyncio.gather(*[_ensure() for _ in range(5)])
    assert len(set(ids)) == 1
    assert await _root_count(session_factory) == 1


async def test_container_initialization_twice_keeps_single_root(settings):
    container = build_container(settings)
    try:
        first = await container.initialize()
        second = await container.initialize()
        assert first.id == second.id
        assert await _root_count(container.session_factory) == 1
    finally:
        await container.close()


async def test_get_root_before_initialization(db, folders):
    with pytest.raises(NotFoundError):
        await folders.get_root(db)


@pytest.mark.parametrize("selector", [None, "root"])
async def test_root_selectors(db, folders, root_id, selector):
    assert await folders.resolve_folder_id(db, selector) == root_id


async def test_unknown_folder_selector(db, folders, root_id):
    with pytest.raises(NotFoundError):
        await folders.resolve_folder_id(db, "missing-folder")
    with pytest.raises(NotFoundError):
        await folders.get_folder_contents(db, "missing-folder")


async def test_breadcrumbs_for_root_and_unknown(db, folders, root_id):
    crumbs = await folders.get_breadcrumbs(db, root_id)
    assert [(c.id, c.name) for c in crumbs] == [(root_id, "root")]

    assert await folders.get_breadcrumbs(db, "missing-folder") == []


async def test_breadcrumb_walk_terminates_on_cycle(db, folders, resolver, root_id):
    a_id = await resolver.resolve(db, "A", root_id)
    root = await db.get(Folder, root_id)
    root.parent_id = a_id
    await db.commit()

    crumbs = await folders.get_breadcrumbs(db, a_id)
    assert [c.name for c in crumbs] == ["root", "A"]


async def test_folder_contents_are_sorted_by_name(
    db, folders, resolver, root_id, store_upload
):
    for name in ["beta", "alpha", "Gamma"]:
        await resolver.resolve(db, name, root_id)
    for path in ["zeta.txt", "alpha.txt", "Mid.txt"]:
        await store_upload(b"content", relative_path=path)

    contents = await folders.get_folder_contents(db, "root")

    folder_names = [f.name for f in contents.folders]
    document_names = [d.original_name for d in contents.documents]
    assert contents.folder.id == root_id
    assert folder_names == sorted(["beta", "alpha", "Gamma"])
    assert document_names == sorted(["zeta.txt", "alpha.txt", "Mid.txt"])
    assert [c.name for c in contents.breadcrumbs] == ["root"]


async def test_folder_contents_lists_only_immediate_children(
    db, folders, resolver, root_id, store_upload
):
    projects_id = await resolver.resolve(db, "Projects", root_id)
    await resolver.resolve(db, "Projects/2024/Q1", root_id)
    await store_upload(b"deep", relative_path="Projects/2024/Q1/report.txt")
    await store_upload(b"shallow", relative_path="Projects/readme.txt")

    contents = await folders.get_folder_contents(db, projects_id)

    assert [f.name for f in contents.folders] == ["2024"]
    assert [d.original_name for d in contents.documents] == ["readme.txt"]
    assert [c.name for c in contents.breadcrumbs] == ["root", "Projects"]
