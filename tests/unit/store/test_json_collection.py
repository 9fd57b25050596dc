from uuid import uuid4

from cvfs.core.modules.share.models import ShareRecord
from cvfs.core.store import JsonCollection


async def test_missing_file_is_empty(tmp_path):
    collection = JsonCollection(tmp_path / "shares.json", ShareRecord)
    assert await collection.load() == []


async def test_save_replaces_document(tmp_path):
    collection = JsonCollection(tmp_path / "nested" / "shares.json", ShareRecord)
    first = ShareRecord(source_user_id=uuid4(), target_user_id=uuid4(), path="/a.txt", name="a.txt")
    second = ShareRecord(source_user_id=uuid4(), target_user_id=uuid4(), path="/b", name="b", denied=True)

    await collection.save([first, second])
    await collection.save([second])

    assert await collection.load() == [second]
    # No temporary files are left behind
    assert [p.name for p in (tmp_path / "nested").iterdir()] == ["shares.json"]
