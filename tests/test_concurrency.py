"""Concurrent deletions against exactly two admins never leave zero admins."""

import os
import tempfile
import threading
import unittest

from sqlalchemy.orm import sessionmaker

from warden.core.database import make_engine
from warden.core.errors import LastAdminProtectedError, NotFoundError
from warden.models import Base
from warden.scripts.create_user import create_user
from warden.scripts.seed_roles import seed_roles
from warden.services import accounts
from warden.services.policy import Principal
from warden.services.store import UserStore


class TestConcurrentAdminDeletion(unittest.TestCase):
    """Each worker uses its own session and connection, like separate requests."""

    def setUp(self) -> None:
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.engine = make_engine(f"sqlite:///{self.db_path}")
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autoflush=False)
        with self.Session() as session:
            seed_roles(session)
            x = create_user(session, "X", "x@example.com", "Secret123", role="Admin", rounds=4)
            y = create_user(session, "Y", "y@example.com", "Secret123", role="Admin", rounds=4)
        self.x = Principal(id=x.id, email=x.email, role="Admin")
        self.y = Principal(id=y.id, email=y.email, role="Admin")

    def tearDown(self) -> None:
        self.engine.dispose()
        os.remove(self.db_path)

    def _run(self, jobs: list[tuple[Principal, int]]) -> list[BaseException | None]:
        barrier = threading.Barrier(len(jobs))
        outcomes: list[BaseException | None] = [None] * len(jobs)

        def worker(index: int, actor: Principal, target_id: int) -> None:
            with self.Session() as session:
                barrier.wait()
                try:
                    accounts.delete_user(session, actor, target_id)
                except (LastAdminProtectedError, NotFoundError) as e:
                    outcomes[index] = e

        threads = [
            threading.Thread(target=worker, args=(i, actor, target))
            for i, (actor, target) in enumerate(jobs)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return outcomes

    def _admin_count(self) -> int:
        with self.Session() as session:
            return UserStore(session).count_by_role("Admin")

    def test_cross_deletion_leaves_one_admin(self) -> None:
        outcomes = self._run([(self.x, self.y.id), (self.y, self.x.id)])
        self.assertEqual(self._admin_count(), 1)
        self.assertEqual(sum(1 for o in outcomes if o is None), 1)
        self.assertEqual(
            sum(1 for o in outcomes if isinstance(o, LastAdminProtectedError)), 1
        )

    def test_many_concurrent_deletions_leave_at_least_one_admin(self) -> None:
        jobs = [
            (self.x, self.y.id),
            (self.y, self.x.id),
            (self.x, self.x.id),
            (self.y, self.y.id),
        ]
        outcomes = self._run(jobs)
        self.assertEqual(self._admin_count(), 1)
        self.assertLessEqual(sum(1 for o in outcomes if o is None), 1)


if __name__ == "__main__":
    unittest.main()
