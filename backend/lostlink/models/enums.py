from sqlalchemy import BigInteger, Enum, Integer

# Enum types are created by migrations on Postgres and degrade to VARCHAR + CHECK elsewhere.

lost_status_enum = Enum("active", "found", name="lost_status_enum")

# BIGSERIAL on Postgres; SQLite only autoincrements INTEGER primary keys.
BigIntId = BigInteger().with_variant(Integer, "sqlite")
