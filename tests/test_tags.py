import pytest
from sqlalchemy.exc import IntegrityError

from app import associations, models, tags
from app.config import DEFAULT_TAG_COLOR
from app.exceptions import NoTagsFoundError, TagNameConflictError, TagNotFoundError, ValidationError
from tests.conftest import link_count, make_contact


def test_create_tag_defaults(db, user):
    tag = tags.create_tag(db, user.id, "  Work  ")

    assert tag.id is not None
    assert tag.name == "Work"
    assert tag.color == DEFAULT_TAG_COLOR
    assert tag.usage_count == 0
    assert tag.created_by == user.id
    assert tag.created_at is not None


def test_create_tag_with_color(db, user):
    tag = tags.create_tag(db, user.id, "family_and-friends 2", "#FF5733")
    assert tag.color == "#FF5733"


@pytest.mark.parametrize("name", [None, "", "   ", "a" * 51, "work!", "café"])
def test_create_tag_rejects_bad_names(db, user, name):
    with pytest.raises(ValidationError):
        tags.create_tag(db, user.id, name)


@pytest.mark.parametrize("color", ["red", "#FFF", "#GGGGGG", "3498db"])
def test_create_tag_rejects_bad_colors(db, user, color):
    with pytest.raises(ValidationError):
        tags.create_tag(db, user.id, "Work", color)


def test_tag_names_unique_per_owner_ignoring_case(db, user):
    tags.create_tag(db, user.id, "Work")
    with pytest.raises(TagNameConflictError):
        tags.create_tag(db, user.id, "WORK")


def test_same_tag_name_allowed_for_different_owners(db, user, other_user):
    first = tags.create_tag(db, user.id, "Work")
    second = tags.create_tag(db, other_user.id, "work")
    assert first.id != second.id


def test_store_index_rejects_duplicate_names(db, user):
    db.add(models.Tag(name="Work", created_by=user.id))
    db.commit()

    db.add(models.Tag(name="WORK", created_by=user.id))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_create_tag_conflict_when_early_check_misses(db, user, monkeypatch):
    tags.create_tag(db, user.id, "Work")
    monkeypatch.setattr(tags, "find_tag_by_name", lambda *args, **kwargs: None)

    with pytest.raises(TagNameConflictError):
        tags.create_tag(db, user.id, "work")
    assert db.query(models.Tag).count() == 1


def test_list_tags_orders_by_usage_then_newest(db, user):
    old = tags.create_tag(db, user.id, "Old")
    new = tags.create_tag(db, user.id, "New")
    popular = tags.create_tag(db, user.id, "Popular")
    contact = make_contact(db, user)
    associations.link(db, user.id, popular.id, contact.id)

    listed = tags.list_tags(db, user.id)

    assert [t.id for t in listed] == [popular.id, new.id, old.id]


def test_list_tags_empty(db, user):
    with pytest.raises(NoTagsFoundError):
        tags.list_tags(db, user.id)


def test_list_tags_only_own(db, user, other_user):
    tags.create_tag(db, other_user.id, "Theirs")
    with pytest.raises(NoTagsFoundError):
        tags.list_tags(db, user.id)


def test_update_tag_rename_and_recolor(db, user):
    tag = tags.create_tag(db, user.id, "Work")

    updated = tags.update_tag(db, user.id, tag.id, name="Office", color="#000000")

    assert updated.name == "Office"
    assert updated.color == "#000000"


def test_update_tag_case_change_of_own_name(db, user):
    tag = tags.create_tag(db, user.id, "work")
    assert tags.update_tag(db, user.id, tag.id, name="WORK").name == "WORK"


def test_update_tag_rename_conflict(db, user):
    tags.create_tag(db, user.id, "Work")
    home = tags.create_tag(db, user.id, "Home")

    with pytest.raises(TagNameConflictError):
        tags.update_tag(db, user.id, home.id, name="work")


def test_update_tag_requires_a_field(db, user):
    tag = tags.create_tag(db, user.id, "Work")
    with pytest.raises(ValidationError):
        tags.update_tag(db, user.id, tag.id)


def test_update_tag_of_other_user_is_not_found(db, user, other_user):
    tag = tags.create_tag(db, other_user.id, "Work")
    with pytest.raises(TagNotFoundError):
        tags.update_tag(db, user.id, tag.id, color="#000000")


def test_delete_tag_detaches_contacts(db, user):
    tag = tags.create_tag(db, user.id, "Work")
    contacts = [make_contact(db, user, name=f"Contact {i}") for i in range(3)]
    for contact in contacts:
        associations.link(db, user.id, tag.id, contact.id)

    deleted, detached = tags.delete_tag(db, user.id, tag.id)

    assert deleted.id == tag.id
    assert deleted.usage_count == 3
    assert detached == 3
    for contact in contacts:
        db.refresh(contact)
        assert tag.id not in [t.id for t in contact.tags]
    assert link_count(db, deleted.id) == 0
    assert db.get(models.Tag, deleted.id) is None


def test_delete_tag_twice_is_not_found(db, user):
    tag = tags.create_tag(db, user.id, "Work")
    tags.delete_tag(db, user.id, tag.id)

    with pytest.raises(TagNotFoundError):
        tags.delete_tag(db, user.id, tag.id)


def test_delete_tag_of_other_user_is_not_found(db, user, other_user):
    tag = tags.create_tag(db, other_user.id, "Work")
    with pytest.raises(TagNotFoundError):
        tags.delete_tag(db, user.id, tag.id)
    assert db.get(models.Tag, tag.id) is not None


def test_usage_counter_never_negative():
    tag = models.Tag(name="Work", usage_count=0)

    tags.decrement_usage(tag)
    assert tag.usage_count == 0

    tags.increment_usage(tag)
    tags.increment_usage(tag, by=2)
    assert tag.usage_count == 3
    tags.decrement_usage(tag)
    assert tag.usage_count == 2
