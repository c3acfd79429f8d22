import asyncio

import pytest
from sqlalchemy import func, select

from db.models import Folder
from db.path_resolver import split_virtual_path
from doc_vault.exception.custom_exception import NotFoundError, ValidationError


@pytest.mark.parametrize(
    "path, expected",
    [
        ("Data/2024/Logs", ["Data", "2024", "Logs"]),
        ("/Data//2024/", ["Data", "2024"]),
        ("./Data/./Logs", ["Data", "Logs"]),
        ("", []),
        (".", []),
        ("///", []),
    ],
)
def test_split_virtual_path(path, expected):
    assert split_virtual_path(path) == expected


def test_split_virtual_path_rejects_parent_segments():
    with pytest.raises(ValidationError):
        split_virtual_path("Data/../etc")


@pytest.mark.parametrize("path", ["", ".", "/", "./."])
async def test_empty_path_returns_start_folder(db, resolver, root_id, path):
    assert await resolver.resolve(db, path, root_id) == root_id


async def test_resolve_creates_folder_chain(db, folders, resolver, root_id):
    leaf_id = await resolver.resolve(db, "A/B/C", root_id)

    crumbs = await folders.get_breadcrumbs(db, leaf_id)
    assert [c.name for c in crumbs] == ["root", "A", "B", "C"]
    assert crumbs[0].id == root_id


async def test_resolve_is_deterministic(db, resolver, root_id):
    first = await resolver.resolve(db, "Projects/2024", root_id)
    second = await resolver.resolve(db, "Projects/2024", root_id)
    assert first == second

    count = await db.scalar(select(func.count()).select_from(Folder))
    assert count == 3  # root, Projects, 2024


async def test_resolve_reuses_shared_prefix(db, resolver, root_id):
    a_b = await resolver.resolve(db, "A/B", root_id)
    a_c = await resolver.resolve(db, "A/C", root_id)

    b = await db.get(Folder, a_b)
    c = await db.get(Folder, a_c)
    assert b.parent_id == c.parent_id


async def test_folder_names_are_case_sensitive(db, resolver, root_id):
    lower = await resolver.resolve(db, "docs", root_id)
    upper = await resolver.resolve(db, "Docs", root_id)
    assert lower != upper


async def test_concurrent_resolution_creates_one_chain(session_factory, resolver, root_id):
    async def _resolve(path):
        async with session_factory() as session:
            return await resolver.resolve(session, path, root_id)

    ids = await asyncio.gather(*[_resolve("A/B/C") for _ in range(8)])
    assert len(set(ids)) == 1

    mixed = await asyncio.gather(
        _resolve("A/B/D"), _resolve("A/E"), _resolve("A/B/C"), _resolve("A/E")
    )
    assert mixed[2] == ids[0]
    assert mixed[1] == mixed[3]

    async with session_factory() as session:
        rows = await session.execute(select(Folder.name, Folder.parent_id))
        pairs = rows.all()
    # every (name, parent) pair exists once: root, A, B, C, D, E
    assert len(pairs) == len(set(pairs)) == 6


async def test_resolve_recovers_from_unique_conflict(
    session_factory, resolver, root_id, monkeypatch
):
    async with session_factory() as other:
        other.add(Folder(name="Shared", parent_id=root_id))
        await other.commit()

    real_find_child = resolver._find_child
    calls = {"n": 0}

    async def blind_first_lookup(db, name, parent_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_find_child(db, name, parent_id)

    monkeypatch.setattr(resolver, "_find_child", blind_first_lookup)

    async with session_factory() as session:
        resolved = await resolver.resolve(session, "Shared", root_id)
        existing = await session.execute(
            select(Folder).where(Folder.name == "Shared", Folder.parent_id == root_id)
        )
        assert resolved == existing.scalar_one().id


async def test_unknown_start_folder(db, resolver, root_id):
    with pytest.raises(NotFoundError):
        await resolver.resolve(db, "A", "does-not-exist")


async def test_parent_segments_are_rejected(db, resolver, root_id):
    with pytest.raises(ValidationError):
        await resolver.resolve(db, "A/../B", root_id)
