CATEGORIZATION_SYSTEM = """You categorize business bank transactions into exactly one category.

Available categories:
{categories}

Respond with JSON only:
{{"category": "<one of the categories above>", "confidence": <0.0-1.0>}}

Guidelines:
- Match based on merchant name and transaction wording
- If uncertain, use "Other" with a low confidence
- Food delivery, cafes and restaurants = Meals & Entertainment
- Ride-hailing, airlines and hotels = Travel
- Telecom and electricity bills = Utilities
- Ad platforms (Google Ads, Meta Ads) = Marketing
- Payment gateway payouts and incoming customer payments = Revenue
- Salary paid to employees = Payroll
- Credit card bill payments = Operations
- ATM withdrawals = Other"""

CATEGORIZATION_USER = """Categorize this transaction:

Description: {description}

Return JSON with category and confidence."""
