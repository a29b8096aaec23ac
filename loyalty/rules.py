# loyalty/rules.py

from decimal import Decimal, ROUND_FLOOR

from django.conf import settings

from clinics.currency import to_money
from .models import LoyaltyRule


class LoyaltyRuleResolver:
    """
    Picks the rule that governs a loyalty event and does the points arithmetic.

    Earning rules (TREATMENT, PURCHASE, VISIT) read points_per_unit as points
    per unit of currency. REDEEM rules read it the other way round: currency
    discount per point, with min_amount being the fewest points redeemable.
    """

    def default_rule(self, event_type):
        return LoyaltyRule(
            name='Default',
            event_type=event_type,
            points_per_unit=Decimal(str(settings.LOYALTY_DEFAULT_POINTS_PER_UNIT)),
            min_amount=Decimal('0.00'),
            active=True,
        )

    def resolve(self, rules, event_type):
        """First active rule of the event type in iteration order, else the default."""
        for rule in rules:
            if rule.event_type == event_type and rule.active:
                return rule
        return self.default_rule(event_type)

    def for_location(self, location_id, event_type):
        rules = LoyaltyRule.objects.filter(
            location_id=location_id,
            event_type=event_type,
            active=True,
        ).order_by('pk')
        return self.resolve(rules, event_type)

    def has_rule(self, location_id, event_type):
        return LoyaltyRule.objects.filter(location_id=location_id, event_type=event_type, active=True).exists()

    def points_earned(self, rule, amount):
        amount = Decimal(str(amount))
        if amount < rule.min_amount:
            return 0
        points = (amount * rule.points_per_unit).to_integral_value(rounding=ROUND_FLOOR)
        return max(int(points), 0)

    def redemption_value(self, rule, points):
        return to_money(Decimal(points) * rule.points_per_unit)

    def can_redeem(self, rule, points):
        return points > 0 and points >= rule.min_amount
