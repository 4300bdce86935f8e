from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Loan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('loan_number', models.CharField(blank=True, help_text='Human readable loan number, assigned after creation.', max_length=20, null=True, unique=True)),
                ('principal_amount', models.DecimalField(decimal_places=2, help_text='Loan principal.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('interest_rate', models.DecimalField(decimal_places=2, help_text='Annual interest rate (percentage).', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('tenure_months', models.PositiveIntegerField(help_text='Loan tenure in months.', validators=[django.core.validators.MinValueValidator(1)])),
                ('emi_amount', models.DecimalField(decimal_places=2, help_text='Fixed monthly installment.', max_digits=15)),
                ('total_amount', models.DecimalField(decimal_places=2, help_text='Principal plus all scheduled interest.', max_digits=15)),
                ('start_date', models.DateField(help_text='Date the schedule is counted from.')),
                ('disbursement_date', models.DateField(blank=True, help_text='Date the money was handed over.', null=True)),
                ('maturity_date', models.DateField(help_text='Due date of the last EMI.')),
                ('status', models.CharField(choices=[('pending_approval', 'Pending approval'), ('active', 'Active'), ('completed', 'Completed'), ('defaulted', 'Defaulted')], db_index=True, default='pending_approval', max_length=20)),
                ('purpose', models.CharField(blank=True, default='', max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Whether the loan is in the trash.')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='When the loan was moved to the trash.', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('borrower', models.ForeignKey(help_text='The borrower this loan was given to.', on_delete=django.db.models.deletion.PROTECT, related_name='loans_taken', to='accounts.member')),
                ('lender', models.ForeignKey(help_text='The lender who owns this loan.', on_delete=django.db.models.deletion.PROTECT, related_name='loans_given', to='accounts.member')),
            ],
            options={
                'db_table': 'loans',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['lender', 'is_deleted'], name='idx_loan_lender_deleted'),
                    models.Index(fields=['is_deleted', 'deleted_at'], name='idx_loan_trash_expiry'),
                ],
            },
        ),
        migrations.CreateModel(
            name='EMI',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('emi_number', models.PositiveIntegerField()),
                ('due_date', models.DateField(db_index=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('principal_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('interest_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('outstanding_balance', models.DecimalField(decimal_places=2, help_text='Principal still owed after this installment.', max_digits=15)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=15)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partial', 'Partially paid'), ('paid', 'Paid')], default='pending', max_length=10)),
                ('paid_at', models.DateField(blank=True, null=True)),
                ('loan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emis', to='loans.loan')),
            ],
            options={
                'db_table': 'emis',
                'ordering': ['loan', 'emi_number'],
                'constraints': [models.UniqueConstraint(fields=('loan', 'emi_number'), name='uniq_emi_loan_number')],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('method', models.CharField(choices=[('cash', 'Cash'), ('bank_transfer', 'Bank transfer'), ('upi', 'UPI'), ('cheque', 'Cheque')], default='cash', max_length=20)),
                ('reference', models.CharField(blank=True, default='', max_length=100)),
                ('paid_on', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('emi', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='loans.emi')),
                ('loan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='loans.loan')),
                ('recorded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments_recorded', to='accounts.member')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-created_at'],
            },
        ),
    ]
