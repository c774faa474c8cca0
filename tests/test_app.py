"""Tests for AppState: session awards, attribute and skill management."""

from datetime import timedelta

import pytest

from focus_rank.app import AppState
from focus_rank.db import Database
from focus_rank.models import (
    NotificationSettings,
    Session,
    SkillTier,
    StreakSegment,
)
from focus_rank.storage import Storage


@pytest.fixture
def storage(tmp_path):
    store = Storage.open(tmp_path / "test.db")
    yield store
    store.close()


@pytest.fixture
def app(storage, scheduler, clock):
    return AppState(storage, scheduler=scheduler, clock=clock)


def _session(clock, minutes, attribute_ids=("strength",), skill_id=None, session_id="session_1"):
    return Session(
        id=session_id,
        start_time=clock(),
        end_time=clock() + timedelta(minutes=minutes),
        focus_minutes_total=minutes,
        completed_focus_blocks=int(minutes // 25),
        streak_segments=(StreakSegment(minutes),),
        attribute_ids_awarded_to=tuple(attribute_ids),
        skill_id=skill_id,
    )


class TestStartup:
    def test_first_run_creates_default_user(self, app, storage):
        assert app.user.name == "Solo Leveler"
        assert [a.id for a in app.user.attributes] == ["strength", "intelligence"]
        assert storage.load_user() == app.user

    def test_existing_user_loaded(self, storage, scheduler, clock):
        first = AppState(storage, scheduler=scheduler, clock=clock)
        first.update_profile(name="Jin")
        second = AppState(storage, scheduler=scheduler, clock=clock)
        assert second.user.name == "Jin"

    def test_memory_only(self, scheduler, clock):
        app = AppState(Storage(None), scheduler=scheduler, clock=clock)
        assert app.user.id == "default-user"
        assert app.settings == NotificationSettings()

    def test_timer_restored(self, tmp_path, scheduler, clock):
        db_path = tmp_path / "restore.db"
        first = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        first.timer.start()
        scheduler.fire(60)
        first.close()
        second = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        state = second.timer.get_state()
        second.close()
        assert state.is_running is False
        assert state.time_remaining == 1500 - 60
        assert state.session_start_time is not None


class TestSessionComplete:
    def test_xp_recorded_on_session(self, app, clock):
        award = app.handle_session_complete(_session(clock, 180))
        assert award.xp.total_xp == pytest.approx(2100)
        assert award.session.total_xp == pytest.approx(2100)
        assert app.user.sessions == [award.session]
        assert app.last_award is award

    def test_attribute_levels_up(self, app, clock):
        award = app.handle_session_complete(_session(clock, 180))
        strength = app.find_attribute("strength")
        assert strength.level == 4
        assert strength.current_xp == pytest.approx(0)
        assert strength.xp_to_next_level == 700
        assert [(u.attribute_id, u.old_level, u.new_level) for u in award.level_ups] == [
            ("strength", 1, 4)
        ]

    def test_unselected_attribute_untouched(self, app, clock):
        app.handle_session_complete(_session(clock, 180))
        assert app.find_attribute("intelligence").level == 1

    def test_xp_carries_across_bands(self, app, clock):
        strength = app.find_attribute("strength")
        strength.level = 5
        strength.current_xp = 600
        app.storage.save_user(app.user)
        app.handle_session_complete(_session(clock, 180))
        strength = app.find_attribute("strength")
        assert strength.level == 7
        assert strength.current_xp == pytest.approx(600)
        assert strength.xp_to_next_level == 1400

    def test_small_session_no_level_up(self, app, clock):
        award = app.handle_session_complete(_session(clock, 30))
        assert award.level_ups == []
        assert app.find_attribute("strength").current_xp == pytest.approx(350)

    def test_missing_attribute_skipped(self, app, clock):
        award = app.handle_session_complete(_session(clock, 50, attribute_ids=("gone", "strength")))
        assert [u.attribute_id for u in award.level_ups] == []
        assert app.find_attribute("strength").current_xp == pytest.approx(500 + 100 * 50 / 60)

    def test_skill_hours_and_tier(self, app, clock):
        skill = app.create_skill("Guitar")
        skill.total_hours = 19.0
        app.storage.save_user(app.user)
        award = app.handle_session_complete(_session(clock, 120, skill_id=skill.id))
        skill = app.find_skill(skill.id)
        assert skill.total_hours == pytest.approx(21.0)
        assert skill.tier == SkillTier.SKILL
        assert award.new_tier == SkillTier.SKILL
        assert award.skill_hours == pytest.approx(2.0)

    def test_no_tier_change_reported_as_none(self, app, clock):
        skill = app.create_skill("Guitar")
        award = app.handle_session_complete(_session(clock, 60, skill_id=skill.id))
        assert award.new_tier is None
        skill = app.find_skill(skill.id)
        assert skill.tier == SkillTier.NONE

    def test_deleted_skill_ignored(self, app, clock):
        award = app.handle_session_complete(_session(clock, 60, skill_id="skill_gone"))
        assert award.skill_hours == 0

    def test_persisted(self, app, storage, clock):
        app.handle_session_complete(_session(clock, 180))
        stored = storage.load_user()
        assert stored.sessions[0].total_xp == pytest.approx(2100)
        assert stored.attributes[0].level == 4

    def test_totals(self, app, clock):
        app.handle_session_complete(_session(clock, 60, session_id="a"))
        app.handle_session_complete(_session(clock, 30, session_id="b"))
        assert app.total_focus_hours() == pytest.approx(1.5)
        assert app.total_xp_earned() == pytest.approx(700 + 350)

    def test_timer_stop_triggers_award(self, app, scheduler):
        app.set_timer_selection()
        app.timer.start()
        scheduler.fire(600)
        session = app.timer.stop()
        assert app.last_award is not None
        assert app.last_award.session.id == session.id
        assert app.last_award.session.total_xp == pytest.approx(100 + 100 * 10 / 60)
        assert app.find_attribute("strength").current_xp == pytest.approx(100 + 100 * 10 / 60)
        assert app.find_attribute("intelligence").current_xp == pytest.approx(100 + 100 * 10 / 60)


class TestTimerSelection:
    def test_no_attributes_means_all(self, app):
        chosen = app.set_timer_selection("skill_1")
        assert chosen == ["strength", "intelligence"]
        assert app.timer.get_state().selected_attribute_ids == chosen
        assert app.timer.get_state().selected_skill_id == "skill_1"

    def test_explicit_attributes(self, app):
        assert app.set_timer_selection(None, ["intelligence"]) == ["intelligence"]


class TestAttributes:
    def test_create(self, app, storage):
        attr = app.create_attribute("Charisma")
        assert attr.id.startswith("attr_")
        assert attr.level == 1
        assert attr in app.user.attributes
        assert storage.load_user().attributes[-1].name == "Charisma"

    def test_delete_custom(self, app):
        attr = app.create_attribute("Charisma")
        assert app.delete_attribute(attr.id) is True
        assert app.find_attribute(attr.id) is None

    def test_defaults_protected(self, app):
        assert app.delete_attribute("strength") is False
        assert app.delete_attribute("intelligence") is False
        assert len(app.user.attributes) == 2

    def test_delete_unlinks_from_skills(self, app):
        attr = app.create_attribute("Charisma")
        skill = app.create_skill("Public speaking", attribute_ids=[attr.id, "intelligence"])
        app.delete_attribute(attr.id)
        assert app.find_skill(skill.id).attribute_ids == ["intelligence"]

    def test_delete_unknown(self, app):
        assert app.delete_attribute("attr_nope") is False


class TestSkills:
    def test_create(self, app):
        skill = app.create_skill("Chess", image_url="c.png", attribute_ids=["intelligence"])
        assert skill.id.startswith("skill_")
        assert skill.tier == SkillTier.NONE
        assert skill.total_hours == 0
        assert skill.attribute_ids == ["intelligence"]

    def test_delete(self, app, storage):
        skill = app.create_skill("Chess")
        assert app.delete_skill(skill.id) is True
        assert app.find_skill(skill.id) is None
        assert storage.load_user().skills == []

    def test_delete_unknown(self, app):
        assert app.delete_skill("skill_nope") is False


class TestProfileAndSettings:
    def test_rename(self, app, storage):
        app.update_profile(name="Jin-Woo")
        assert storage.load_user().name == "Jin-Woo"

    def test_avatar_set_and_clear(self, app):
        app.update_profile(avatar_url="me.png")
        assert app.user.avatar_url == "me.png"
        app.update_profile(avatar_url="")
        assert app.user.avatar_url is None

    def test_update_settings_partial(self, app, storage):
        app.update_settings(audio_enabled=False)
        assert app.settings == NotificationSettings(audio_enabled=False, volume=0.5)
        app.update_settings(volume=0.8)
        assert storage.load_settings() == NotificationSettings(audio_enabled=False, volume=0.8)

    def test_volume_clamped(self, app):
        assert app.update_settings(volume=7).volume == 1.0


class TestUnreadableStore:
    def test_corrupt_row_keeps_stored_progress(self, tmp_path, scheduler, clock):
        db_path = tmp_path / "test.db"
        first = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        first.create_attribute("Wisdom")
        first.find_attribute("strength").level = 9
        first.storage.save_user(first.user)
        first.storage.db.conn.execute(
            "UPDATE attributes SET created_at = 'garbage' WHERE id = 'intelligence'"
        )
        first.storage.db.conn.commit()
        first.close()

        second = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        assert second.storage.is_persistent is False
        assert [a.level for a in second.user.attributes] == [1, 1]
        second.create_skill("Guitar")
        second.close()

        db = Database(db_path=db_path)
        rows = db.get_attributes()
        skills = db.get_skills()
        db.close()
        assert [(r["name"], r["level"]) for r in rows] == [
            ("Strength", 9), ("Intelligence", 1), ("Wisdom", 1),
        ]
        assert skills == []


class TestSharedDatabase:
    def test_session_keeps_edits_made_while_timer_ran(self, tmp_path, scheduler, clock):
        db_path = tmp_path / "shared.db"
        running = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        running.set_timer_selection()
        running.timer.start()
        scheduler.fire(600)

        other = AppState(Storage.open(db_path), scheduler=scheduler, clock=clock)
        skill = other.create_skill("Guitar")
        charisma = other.create_attribute("Charisma")
        other.update_profile(name="Jin")
        other.close()

        running.timer.stop()
        assert running.find_skill(skill.id) is not None
        assert running.user.name == "Jin"
        running.close()

        stored = Storage.open(db_path)
        user = stored.load_user()
        stored.close()
        assert [s.name for s in user.skills] == ["Guitar"]
        assert charisma.id in [a.id for a in user.attributes]
        assert user.name == "Jin"
        assert len(user.sessions) == 1
        assert user.attributes[0].current_xp == pytest.approx(100 + 100 * 10 / 60)
