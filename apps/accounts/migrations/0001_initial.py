from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('full_name', models.CharField(help_text="Member's full name.", max_length=200)),
                ('email', models.EmailField(help_text='Login email, unique across members.', max_length=254, unique=True)),
                ('phone', models.CharField(db_index=True, help_text="Member's phone number.", max_length=20)),
                ('role', models.CharField(choices=[('super_admin', 'Super admin'), ('lender', 'Lender'), ('borrower', 'Borrower')], db_index=True, help_text="Member's role on the platform.", max_length=20)),
                ('active', models.BooleanField(default=True, help_text='Inactive members cannot act on the platform.')),
                ('monthly_income', models.DecimalField(blank=True, decimal_places=2, help_text="Borrower's declared monthly income.", max_digits=15, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lender', models.ForeignKey(blank=True, help_text='Lender who onboarded this borrower.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='borrowers', to='accounts.member')),
            ],
            options={
                'db_table': 'members',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['lender', 'role'], name='idx_member_lender_role')],
            },
        ),
    ]
