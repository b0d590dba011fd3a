from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker

from aura.commands import sweep_verification_codes as sweep_command
from aura.models.verification_code import VerificationCode


def _seed(db) -> None:
    now = datetime.now(timezone.utc)
    old = now - timedelta(hours=3)
    db.add_all(
        [
            # Expired long ago
            VerificationCode(
                phone="+201000000001",
                code="111111",
                issued_at=old,
                expires_at=old + timedelta(minutes=10),
            ),
            # Consumed long ago
            VerificationCode(
                phone="+201000000002",
                code="222222",
                issued_at=old,
                expires_at=old + timedelta(minutes=10),
                consumed_at=old + timedelta(minutes=1),
            ),
            # Still confirmable
            VerificationCode(
                phone="+201000000003",
                code="333333",
                issued_at=now,
                expires_at=now + timedelta(minutes=10),
            ),
        ]
    )
    db.commit()


def test_sweep_removes_stale_rows(db, policy) -> None:
    _seed(db)

    assert sweep_command.sweep_verification_codes(db, policy) == 2
    assert [row.phone for row in db.query(VerificationCode).all()] == ["+201000000003"]


def test_sweep_is_idempotent(db, policy) -> None:
    _seed(db)
    sweep_command.sweep_verification_codes(db, policy)

    assert sweep_command.sweep_verification_codes(db, policy) == 0


def test_main_uses_a_fresh_session(engine, db, monkeypatch, capsys) -> None:
    _seed(db)
    monkeypatch.setattr(sweep_command, "SessionLocal", sessionmaker(bind=engine))

    assert sweep_command.main([]) == 0

    assert "Removed 2 stale verification codes" in capsys.readouterr().out
    assert db.query(VerificationCode).count() == 1
