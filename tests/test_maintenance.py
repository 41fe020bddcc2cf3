import uuid

from sqlalchemy import func, select

from create_admin import create_admin
from devsnippet.core.security import verify_password
from devsnippet.models import Post, PostLike, User
from devsnippet.services.post_service import PostService


async def seed_user(db, username):
    user = User(username=username, email=f"{username}@x.com", hashed_password="x")
    db.add(user)
    await db.flush()
    return user


async def test_orphan_sweep_deletes_exactly_the_orphans(db):
    alice = await seed_user(db, "alice")
    kept = [Post(title=f"kept {i}", content="c", author_id=alice.id) for i in range(3)]
    ghost_id = str(uuid.uuid4())
    orphans = [Post(title=f"orphan {i}", content="c", author_id=ghost_id) for i in range(2)]
    db.add_all(kept + orphans)
    await db.flush()
    db.add(PostLike(post_id=orphans[0].id, user_id=alice.id))
    await db.commit()

    deleted = await PostService.sweep_orphans(db)
    await db.commit()
    again = await PostService.sweep_orphans(db)

    assert deleted == 2
    assert again == 0
    remaining = (await db.execute(select(Post.title).order_by(Post.title))).scalars().all()
    assert remaining == ["kept 0", "kept 1", "kept 2"]
    likes = (await db.execute(select(func.count()).select_from(PostLike))).scalar_one()
    assert likes == 0


async def test_orphan_sweep_on_clean_store(db):
    alice = await seed_user(db, "alice")
    db.add(Post(title="t", content="c", author_id=alice.id))
    await db.commit()

    assert await PostService.sweep_orphans(db) == 0


async def test_create_admin_is_idempotent(db):
    created = await create_admin(db, "Boss@X.com", "rootpass1", "boss")
    await db.commit()
    repeated = await create_admin(db, "boss@x.com", "other-pass", "boss2")

    assert created is not None
    assert created.role == "admin"
    assert created.email == "boss@x.com"
    assert created.bio == "Platform Administrator"
    assert verify_password("rootpass1", created.hashed_password)
    assert repeated is None
