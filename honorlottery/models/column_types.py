from decimal import Decimal

from sqlalchemy import BigInteger, Integer, Numeric, String
from sqlalchemy.types import TypeDecorator

# Use BigInteger by default, with a SQLite-safe Integer variant for autoincrement PKs.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class TokenAmount(TypeDecorator):
    """Unbounded non-negative token amount stored without precision loss.

    Amounts are 18-decimal base units and overflow a 64-bit column, so they are
    kept as ``NUMERIC(78, 0)`` and as decimal text on SQLite (whose numeric
    affinity silently falls back to floating point above 2**63).
    """

    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(78))
        return dialect.type_descriptor(Numeric(78, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if dialect.name == "sqlite":
            return str(value)
        return Decimal(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)
