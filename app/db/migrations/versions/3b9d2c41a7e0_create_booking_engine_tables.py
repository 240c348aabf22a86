from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3b9d2c41a7e0"
down_revision = None
branch_labels = None
depends_on = None


WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def upgrade():
    # 1️⃣ ENUM types
    class_type_enum = postgresql.ENUM("class 4", "class 5", "class 7", name="classtype", create_type=False)
    package_enum = postgresql.ENUM("1 lesson", "3 lessons", "10 lessons", name="packagelabel", create_type=False)
    weekday_enum = postgresql.ENUM(*WEEKDAYS, name="weekday", create_type=False)
    booking_status_enum = postgresql.ENUM(
        "pending",
        "approved",
        "completed",
        "cancelled",
        name="bookingstatus", create_type=False
    )
    payment_status_enum = postgresql.ENUM(
        "requested",
        "invoice-sent",
        "approved",
        "rejected",
        "completed",
        name="paymentstatus", create_type=False
    )

    # Types are shared between tables, so create them once up front
    for enum_type in (
        class_type_enum, package_enum, weekday_enum, booking_status_enum, payment_status_enum
    ):
        enum_type.create(op.get_bind(), checkfirst=True)

    # 2️⃣ People
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
    )
    op.create_index("ix_students_id", "students", ["id"])
    op.create_index("ix_students_email", "students", ["email"], unique=True)

    op.create_table(
        "instructors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("locations", sa.JSON(), nullable=False),
        sa.Column("class_types", sa.JSON(), nullable=False),
    )
    op.create_index("ix_instructors_id", "instructors", ["id"])
    op.create_index("ix_instructors_email", "instructors", ["email"], unique=True)

    # 3️⃣ Availability sources
    op.create_table(
        "instructor_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "instructor_id", sa.Integer(),
            sa.ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("day", weekday_enum, nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("instructor_id", "day", name="uq_instructor_availability_day"),
    )
    op.create_index("ix_instructor_availability_instructor_id", "instructor_availability", ["instructor_id"])

    op.create_table(
        "instructor_absences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "instructor_id", sa.Integer(),
            sa.ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
    )
    op.create_index("ix_instructor_absences_instructor_id", "instructor_absences", ["instructor_id"])

    op.create_table(
        "global_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("day", weekday_enum, nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("day", name="uq_global_availability_day"),
    )

    op.create_table(
        "special_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("day", weekday_enum, nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.UniqueConstraint("day", "start_date", "end_date", name="uq_special_availability_range"),
    )

    # 4️⃣ Price table
    op.create_table(
        "prices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("class_type", class_type_enum, nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("package", package_enum, nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.UniqueConstraint("class_type", "duration", "package", name="uq_price_rule"),
    )

    # 5️⃣ Bookings
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("instructor_id", sa.Integer(), sa.ForeignKey("instructors.id"), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("class_type", class_type_enum, nullable=False),
        sa.Column("package", package_enum, nullable=False, server_default="1 lesson"),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False, server_default="pending"),
        sa.Column("payment_status", payment_status_enum, nullable=False, server_default="requested"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("terms_accepted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_instructor_id", "bookings", ["instructor_id"])
    op.create_index("ix_bookings_status_created", "bookings", ["status", "created_at"])

    # 6️⃣ Concurrency backstops
    op.create_index(
        "uq_bookings_instructor_slot",
        "bookings",
        ["instructor_id", "date", "start_time"],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
        sqlite_where=sa.text("status != 'cancelled'"),
    )
    op.create_index(
        "uq_bookings_student_pending",
        "bookings",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )


def downgrade():
    op.drop_index("uq_bookings_student_pending", table_name="bookings")
    op.drop_index("uq_bookings_instructor_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("prices")
    op.drop_table("special_availability")
    op.drop_table("global_availability")
    op.drop_table("instructor_absences")
    op.drop_table("instructor_availability")
    op.drop_table("instructors")
    op.drop_table("students")

    # Drop ENUM types (PostgreSQL)
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS paymentstatus")
        op.execute("DROP TYPE IF EXISTS bookingstatus")
        op.execute("DROP TYPE IF EXISTS weekday")
        op.execute("DROP TYPE IF EXISTS packagelabel")
        op.execute("DROP TYPE IF EXISTS classtype")
