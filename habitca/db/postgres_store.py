"""PostgreSQL implementation of HabitStore"""
import logging
from datetime import date, datetime
from typing import Any, Optional

from psycopg.types.json import Jsonb

from habitca.db.connection import Database
from habitca.exceptions import InvariantViolationError, QueryError
from habitca.models.achievement import Achievement, AchievementRequirement
from habitca.models.habit import CompletionRecord, Habit, HabitInput
from habitca.models.session import HabitSession
from habitca.models.user_stats import UserStats

logger = logging.getLogger(__name__)

HABIT_COLUMNS = "id, title, description, emoji, category, frequency, time, created_at, is_active, track_time"
LOG_COLUMNS = "habit_id, date, completed, xp_earned, time_spent, completed_at"
SESSION_COLUMNS = "id, habit_id, date, start_time, end_time, duration, intensity, notes"


def _achievement_from_row(row: dict) -> Achievement:
    return Achievement(
        id=row["id"],
        type=row["type"],
        title=row["title"],
        description=row["description"],
        icon=row["icon"],
        xp_reward=row["xp_reward"],
        requirement=AchievementRequirement(
            type=row["requirement_type"],
            value=row["requirement_value"],
            timeframe=row["requirement_timeframe"],
        ),
        is_unlocked=row["unlocked_at"] is not None,
        unlocked_at=row["unlocked_at"],
    )


class PostgresHabitStore:
    """
    HabitStore backed by PostgreSQL.

    Driver errors are not caught here; they reach the caller unchanged.
    """

    def __init__(self, db: Database):
        self.db = db

    async def _fetchone(self, query: str, params: tuple = ()) -> Optional[dict]:
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()

    async def _fetchall(self, query: str, params: tuple = ()) -> list[dict]:
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    async def _execute(self, query: str, params: tuple = ()) -> int:
        """Run a write and commit; returns the affected row count"""
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                rowcount = cur.rowcount
            await conn.commit()
            return rowcount

    # ==========================================
    # Habits
    # ==========================================

    async def add_habit(self, habit: HabitInput, created_at: date) -> Habit:
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO habits (title, description, emoji, category, frequency, time, track_time, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {HABIT_COLUMNS}
                    """,
                    (
                        habit.title,
                        habit.description,
                        habit.emoji,
                        habit.category,
                        habit.frequency,
                        habit.time,
                        habit.track_time,
                        created_at,
                    )
                )
                row = await cur.fetchone()
            await conn.commit()

        if row is None:
            raise QueryError("Habit insert returned no row", query="INSERT INTO habits", operation="add_habit")

        logger.info(f"Created habit {row['id']}: {habit.title}")
        return Habit(**row)

    async def update_habit(self, habit_id: int, habit: HabitInput) -> Optional[Habit]:
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    UPDATE habits
                    SET title = %s,
                        description = %s,
                        emoji = %s,
                        category = %s,
                        frequency = %s,
                        time = %s,
                        track_time = %s
                    WHERE id = %s
                    RETURNING {HABIT_COLUMNS}
                    """,
                    (
                        habit.title,
                        habit.description,
                        habit.emoji,
                        habit.category,
                        habit.frequency,
                        habit.time,
                        habit.track_time,
                        habit_id,
                    )
                )
                row = await cur.fetchone()
            await conn.commit()

        return Habit(**row) if row else None

    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        row = await self._fetchone(
            f"SELECT {HABIT_COLUMNS} FROM habits WHERE id = %s",
            (habit_id,)
        )
        return Habit(**row) if row else None

    async def get_habits(self) -> list[Habit]:
        rows = await self._fetchall(
            f"SELECT {HABIT_COLUMNS} FROM habits WHERE is_active ORDER BY created_at DESC, id DESC"
        )
        return [Habit(**row) for row in rows]

    async def get_all_habits(self) -> list[Habit]:
        rows = await self._fetchall(f"SELECT {HABIT_COLUMNS} FROM habits ORDER BY id")
        return [Habit(**row) for row in rows]

    async def set_habit_active(self, habit_id: int, is_active: bool) -> bool:
        updated = await self._execute(
            "UPDATE habits SET is_active = %s WHERE id = %s",
            (is_active, habit_id)
        )
        return updated > 0

    # ==========================================
    # Completion Ledger
    # ==========================================

    async def get_completion_record(self, habit_id: int, day: date) -> Optional[CompletionRecord]:
        rows = await self._fetchall(
            f"SELECT {LOG_COLUMNS} FROM habit_logs WHERE habit_id = %s AND date = %s",
            (habit_id, day)
        )
        if len(rows) > 1:
            raise InvariantViolationError(
                f"Found {len(rows)} completion rows for habit {habit_id} on {day}",
                invariant="one_record_per_habit_day",
                operation="get_completion_record",
                context={"habit_id": habit_id, "date": day.isoformat()},
            )
        return CompletionRecord(**rows[0]) if rows else None

    async def get_completion_records(self, habit_id: int, start: date, end: date) -> list[CompletionRecord]:
        rows = await self._fetchall(
            f"""
            SELECT {LOG_COLUMNS}
            FROM habit_logs
            WHERE habit_id = %s AND date BETWEEN %s AND %s
            ORDER BY date
            """,
            (habit_id, start, end)
        )
        return [CompletionRecord(**row) for row in rows]

    async def get_completed_dates(self, habit_id: int) -> list[date]:
        rows = await self._fetchall(
            "SELECT date FROM habit_logs WHERE habit_id = %s AND completed ORDER BY date DESC",
            (habit_id,)
        )
        return [row["date"] for row in rows]

    async def get_all_completion_records(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        completed_only: bool = True,
    ) -> list[CompletionRecord]:
        conditions = []
        params: list[Any] = []
        if start is not None:
            conditions.append("date >= %s")
            params.append(start)
        if end is not None:
            conditions.append("date <= %s")
            params.append(end)
        if completed_only:
            conditions.append("completed")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = await self._fetchall(
            f"SELECT {LOG_COLUMNS} FROM habit_logs {where} ORDER BY date, habit_id",
            tuple(params)
        )
        return [CompletionRecord(**row) for row in rows]

    async def upsert_completion_record(self, record: CompletionRecord) -> None:
        await self._execute(
            """
            INSERT INTO habit_logs (habit_id, date, completed, xp_earned, time_spent, completed_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (habit_id, date) DO UPDATE
            SET completed = EXCLUDED.completed,
                xp_earned = EXCLUDED.xp_earned,
                time_spent = EXCLUDED.time_spent,
                completed_at = EXCLUDED.completed_at
            """,
            (
                record.habit_id,
                record.date,
                record.completed,
                record.xp_earned,
                record.time_spent,
                record.completed_at,
            )
        )

    async def count_completions_by_day(self, start: date, end: date) -> dict[date, int]:
        rows = await self._fetchall(
            """
            SELECT date, COUNT(*) AS completed_count
            FROM habit_logs
            WHERE completed AND date BETWEEN %s AND %s
            GROUP BY date
            ORDER BY date
            """,
            (start, end)
        )
        return {row["date"]: row["completed_count"] for row in rows}

    # ==========================================
    # User Stats
    # ==========================================

    async def get_user_stats(self) -> UserStats:
        row = await self._fetchone(
            """
            SELECT id, level, xp, total_streaks, longest_streak, achievements
            FROM user_stats
            WHERE id = 1
            """
        )
        if not row:
            # Seed row is created by init_schema; fall back to defaults if missing
            logger.warning("user_stats row missing, using defaults")
            return UserStats()
        return UserStats(**row)

    async def set_user_stats(self, xp: int, level: int) -> None:
        await self._execute(
            "UPDATE user_stats SET xp = %s, level = %s WHERE id = 1",
            (xp, level)
        )

    async def update_user_counters(self, increments: dict[str, int]) -> UserStats:
        async with self.db.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        SELECT id, level, xp, total_streaks, longest_streak, achievements
                        FROM user_stats
                        WHERE id = 1
                        FOR UPDATE
                        """
                    )
                    row = await cur.fetchone()
                    stats = UserStats(**row) if row else UserStats()

                    counters = dict(stats.achievements)
                    for name, amount in increments.items():
                        counters[name] = counters.get(name, 0) + amount

                    await cur.execute(
                        "UPDATE user_stats SET achievements = %s WHERE id = 1",
                        (Jsonb(counters),)
                    )

        return stats.model_copy(update={"achievements": counters})

    async def set_longest_streak(self, longest_streak: int) -> None:
        await self._execute(
            "UPDATE user_stats SET longest_streak = %s WHERE id = 1",
            (longest_streak,)
        )

    # ==========================================
    # Achievements
    # ==========================================

    async def seed_achievements(self, achievements: list[Achievement]) -> int:
        inserted = 0
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                for achievement in achievements:
                    await cur.execute(
                        """
                        INSERT INTO achievements
                        (id, title, description, icon, type, requirement_type, requirement_value,
                         requirement_timeframe, xp_reward)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (id) DO NOTHING
                        """,
                        (
                            achievement.id,
                            achievement.title,
                            achievement.description,
                            achievement.icon,
                            achievement.type.value,
                            achievement.requirement.type.value,
                            achievement.requirement.value,
                            achievement.requirement.timeframe.value if achievement.requirement.timeframe else None,
                            achievement.xp_reward,
                        )
                    )
                    inserted += cur.rowcount
            await conn.commit()

        logger.info(f"Seeded {inserted} new achievements ({len(achievements)} in catalog)")
        return inserted

    async def get_achievements(self) -> list[Achievement]:
        rows = await self._fetchall(
            """
            SELECT a.id, a.title, a.description, a.icon, a.type,
                   a.requirement_type, a.requirement_value, a.requirement_timeframe,
                   a.xp_reward, ua.unlocked_at
            FROM achievements a
            LEFT JOIN user_achievements ua ON a.id = ua.achievement_id
            ORDER BY a.created_at, a.id
            """
        )
        return [_achievement_from_row(row) for row in rows]

    async def set_achievement_unlocked(self, achievement_id: str, unlocked_at: datetime, xp_earned: int) -> bool:
        inserted = await self._execute(
            """
            INSERT INTO user_achievements (achievement_id, unlocked_at, xp_earned)
            SELECT id, %s, %s FROM achievements WHERE id = %s
            ON CONFLICT (achievement_id) DO NOTHING
            """,
            (unlocked_at, xp_earned, achievement_id)
        )
        return inserted > 0

    # ==========================================
    # Time Tracking Sessions
    # ==========================================

    async def create_session(self, habit_id: int, start_time: datetime) -> HabitSession:
        async with self.db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO habit_sessions (habit_id, date, start_time)
                    VALUES (%s, %s, %s)
                    RETURNING {SESSION_COLUMNS}
                    """,
                    (habit_id, start_time.date(), start_time)
                )
                row = await cur.fetchone()
            await conn.commit()

        if row is None:
            raise QueryError("Session insert returned no row", query="INSERT INTO habit_sessions", operation="create_session")
        return HabitSession(**row)

    async def get_session(self, session_id: int) -> Optional[HabitSession]:
        row = await self._fetchone(
            f"SELECT {SESSION_COLUMNS} FROM habit_sessions WHERE id = %s",
            (session_id,)
        )
        return HabitSession(**row) if row else None

    async def update_session(self, session: HabitSession) -> None:
        await self._execute(
            """
            UPDATE habit_sessions
            SET end_time = %s,
                duration = %s,
                intensity = %s,
                notes = %s
            WHERE id = %s
            """,
            (session.end_time, session.duration, session.intensity, session.notes, session.id)
        )

    async def get_active_sessions(self, habit_id: Optional[int] = None) -> list[HabitSession]:
        if habit_id is None:
            rows = await self._fetchall(
                f"SELECT {SESSION_COLUMNS} FROM habit_sessions WHERE end_time IS NULL ORDER BY start_time DESC"
            )
        else:
            rows = await self._fetchall(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM habit_sessions
                WHERE habit_id = %s AND end_time IS NULL
                ORDER BY start_time DESC
                """,
                (habit_id,)
            )
        return [HabitSession(**row) for row in rows]

    async def get_sessions(self, habit_id: int, start: date, end: date) -> list[HabitSession]:
        rows = await self._fetchall(
            f"""
            SELECT {SESSION_COLUMNS}
            FROM habit_sessions
            WHERE habit_id = %s AND date BETWEEN %s AND %s
            ORDER BY start_time DESC
            """,
            (habit_id, start, end)
        )
        return [HabitSession(**row) for row in rows]

    async def delete_session(self, session_id: int) -> bool:
        deleted = await self._execute("DELETE FROM habit_sessions WHERE id = %s", (session_id,))
        return deleted > 0
