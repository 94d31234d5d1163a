# core/constants.py
ACCOUNT_ROLE_CHOICES = (
    ('worker', 'Worker'),
    ('employer', 'Employer'),
)

JOB_CATEGORY_CHOICES = (
    ('Delivery', 'Delivery'),
    ('Events', 'Events'),
    ('Digital', 'Digital'),
    ('Retail', 'Retail'),
    ('Food Service', 'Food Service'),
    ('Other', 'Other'),
)

JOB_STATUS_CHOICES = (
    ('active', 'Active'),             # Open for applications
    ('in_progress', 'In Progress'),   # An application was accepted
    ('completed', 'Completed'),       # Employer signed off, worker paid
    ('cancelled', 'Cancelled'),       # Withdrawn by the employer
    ('expired', 'Expired'),           # Past expires_at
)

JOB_APPLICATION_STATUS_CHOICES = (
    ('pending', 'Pending'),      # Worker applied, awaiting employer response
    ('accepted', 'Accepted'),    # Employer accepted the application
    ('rejected', 'Rejected'),    # Employer rejected the application
    ('withdrawn', 'Withdrawn'),  # Worker pulled the application
)

PAY_TYPE_CHOICES = (
    ('hourly', 'Hourly'),
    ('fixed', 'Fixed'),
    ('commission', 'Commission'),
)

EXPERIENCE_CHOICES = (
    ('none', 'None'),
    ('beginner', 'Beginner'),
    ('intermediate', 'Intermediate'),
    ('expert', 'Expert'),
)

JOB_PAYMENT_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('paid', 'Paid'),
    ('disputed', 'Disputed'),
    ('refunded', 'Refunded'),
)

TRANSACTION_TYPE_CHOICES = (
    ('earned', 'Earned'),
    ('withdrawal', 'Withdrawal'),
    ('refund', 'Refund'),
    ('bonus', 'Bonus'),
    ('fee', 'Fee'),
)

TRANSACTION_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
    ('cancelled', 'Cancelled'),
)

PAYMENT_METHOD_CHOICES = (
    ('card', 'Card'),
    ('bank', 'Bank'),
)

JOB_SORT_CHOICES = ('recent', 'pay_high', 'pay_low', 'distance')
