from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SalesforceSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_id', models.CharField(db_index=True, max_length=100)),
                ('form_type', models.CharField(choices=[('book_now', 'Book now'), ('test_ride', 'Test ride'), ('contact', 'Contact')], default='book_now', max_length=16)),
                ('submission_type', models.CharField(choices=[('success', 'success'), ('failed', 'failed'), ('pending', 'pending')], max_length=16)),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254)),
                ('customer_phone', models.CharField(blank=True, default='', max_length=20)),
                ('help_type', models.CharField(blank=True, default='', max_length=32)),
                ('salesforce_response', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.AddConstraint(
            model_name='salesforcesubmission',
            constraint=models.UniqueConstraint(fields=('transaction_id', 'submission_type', 'form_type'), name='uniq_sf_submission'),
        ),
    ]
