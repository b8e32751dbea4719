import pytest

from app.auth import CurrentUser
from app.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from app.models import ProductImage
from app.services.product_image_service import ProductImageService
from tests.factories import ADMIN, ALICE, BOB, CRIB, STROLLER, FakeImageStore, count_rows

SELLER = CurrentUser(id=BOB, role="user")
STRANGER = CurrentUser(id=ALICE, role="user")
ADMIN_USER = CurrentUser(id=ADMIN, role="admin")

JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def store():
    return FakeImageStore()


@pytest.fixture
def images(seeded_database, store):
    return ProductImageService(seeded_database, store)


async def test_first_image_becomes_primary(images):
    first = await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")
    second = await images.add_image(STROLLER, SELLER, JPEG, "side.jpg")

    assert first.is_primary is True
    assert second.is_primary is False
    assert first.url == "https://images.test/marketplace/img1.jpg"


async def test_make_primary_on_upload_clears_other_flags(images):
    first = await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")
    second = await images.add_image(STROLLER, SELLER, JPEG, "side.png", make_primary=True)

    listed = await images.list_images(STROLLER)

    assert [(image.id, image.is_primary) for image in listed] == [
        (second.id, True),
        (first.id, False),
    ]


async def test_set_primary(images):
    first = await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")
    second = await images.add_image(STROLLER, SELLER, JPEG, "side.jpg")

    updated = await images.set_primary(STROLLER, second.id, SELLER)

    assert updated.is_primary is True
    listed = await images.list_images(STROLLER)
    assert [image.id for image in listed if image.is_primary] == [second.id]
    assert first.id in [image.id for image in listed]


async def test_set_primary_on_already_primary_image_keeps_it(images):
    first = await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")

    await images.set_primary(STROLLER, first.id, SELLER)

    listed = await images.list_images(STROLLER)
    assert listed[0].is_primary is True


async def test_only_seller_or_admin_can_upload(images, store):
    with pytest.raises(ForbiddenError):
        await images.add_image(STROLLER, STRANGER, JPEG, "front.jpg")
    assert store.uploaded == []

    uploaded = await images.add_image(CRIB, ADMIN_USER, JPEG, "crib.jpg")
    assert uploaded.product_id == CRIB


async def test_rejects_unsupported_file_type(images, store):
    with pytest.raises(InvalidInputError):
        await images.add_image(STROLLER, SELLER, b"MZ...", "virus.exe")
    assert store.uploaded == []


async def test_unknown_product(images):
    with pytest.raises(NotFoundError):
        await images.add_image(999, ADMIN_USER, JPEG, "x.jpg")
    with pytest.raises(NotFoundError):
        await images.list_images(999)


async def test_failed_row_insert_removes_uploaded_file(images, store, seeded_database, monkeypatch):
    original = ProductImageService._get_editable_product
    calls = []

    async def fail_inside_transaction(self, session, product_id, requester):
        calls.append(product_id)
        if len(calls) == 2:
            raise RuntimeError("connection reset")
        return await original(self, session, product_id, requester)

    monkeypatch.setattr(ProductImageService, "_get_editable_product", fail_inside_transaction)

    with pytest.raises(RuntimeError):
        await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")

    assert store.uploaded == ["marketplace/img1"]
    assert store.deleted == ["marketplace/img1"]
    assert await count_rows(seeded_database, ProductImage) == 0


async def test_delete_image_removes_row_and_file(images, store, seeded_database):
    image = await images.add_image(STROLLER, SELLER, JPEG, "front.jpg")

    await images.delete_image(STROLLER, image.id, SELLER)

    assert await count_rows(seeded_database, ProductImage) == 0
    assert store.deleted == ["marketplace/img1"]
    with pytest.raises(NotFoundError):
        await images.delete_image(STROLLER, image.id, SELLER)
