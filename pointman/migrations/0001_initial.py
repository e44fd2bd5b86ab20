# Initial schema: members, catalogue and both ledgers

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("phone_number", models.CharField(blank=True, max_length=30, verbose_name="phone number")),
                (
                    "pos_customer_id",
                    models.CharField(
                        blank=True,
                        help_text="Customer identifier in the POS registry",
                        max_length=100,
                        null=True,
                        unique=True,
                        verbose_name="POS customer ID",
                    ),
                ),
                (
                    "points_balance",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Points available for redemption",
                        verbose_name="points balance",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="loyalty_member",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="user",
                    ),
                ),
            ],
            options={
                "verbose_name": "member",
                "verbose_name_plural": "members",
                "db_table": "pointman_member",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(points_balance__gte=0),
                        name="pointman_member_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                ("points_cost", models.PositiveIntegerField(verbose_name="points cost")),
                ("image_url", models.URLField(blank=True, verbose_name="image URL")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "reward",
                "verbose_name_plural": "rewards",
                "db_table": "pointman_reward",
                "ordering": ["points_cost", "name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(points_cost__gt=0),
                        name="pointman_reward_cost_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("pos_store_id", models.CharField(max_length=100, unique=True, verbose_name="POS store ID")),
                (
                    "is_default_for_new_users",
                    models.BooleanField(
                        default=False,
                        help_text="Store new members are registered against in the POS",
                        verbose_name="default for new users",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "store",
                "verbose_name_plural": "stores",
                "db_table": "pointman_store",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="EarnEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("pos_order_id", models.CharField(max_length=100, unique=True, verbose_name="POS order ID")),
                ("pos_customer_id", models.CharField(db_index=True, max_length=100, verbose_name="POS customer ID")),
                ("pos_store_id", models.CharField(blank=True, max_length=100, null=True, verbose_name="POS store ID")),
                (
                    "total_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Sale amount in major currency units",
                        max_digits=12,
                        null=True,
                        verbose_name="total amount",
                    ),
                ),
                ("points_earned", models.PositiveIntegerField(verbose_name="points earned")),
                ("transaction_time", models.DateTimeField(db_index=True, verbose_name="transaction time")),
                ("raw_payload", models.JSONField(blank=True, default=dict, verbose_name="raw payload")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
            ],
            options={
                "verbose_name": "earn event",
                "verbose_name_plural": "earn events",
                "db_table": "pointman_earn_event",
                "ordering": ["-transaction_time", "-id"],
                "indexes": [
                    models.Index(
                        fields=["pos_customer_id", "-transaction_time"],
                        name="pm_earn_customer_time_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Redemption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("points_spent", models.PositiveIntegerField(verbose_name="points spent")),
                (
                    "status",
                    models.CharField(
                        choices=[("REDEEMED", "Redeemed")],
                        default="REDEEMED",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("redeemed_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="redeemed at")),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="redemptions",
                        to="pointman.member",
                        verbose_name="member",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="pointman.reward",
                        verbose_name="reward",
                    ),
                ),
            ],
            options={
                "verbose_name": "redemption",
                "verbose_name_plural": "redemptions",
                "db_table": "pointman_redemption",
                "ordering": ["-redeemed_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["member", "-redeemed_at"],
                        name="pm_redemption_member_time_idx",
                    ),
                ],
            },
        ),
    ]
