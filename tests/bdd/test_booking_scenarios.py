from pytest_bdd import scenarios, when, parsers
from gigcrm.cli.main import cli

scenarios("features/bookings.feature")


@when(parsers.parse('staff book "{event_name}" into "{venue_name}"'))
def book(runner, context, event_name, venue_name):
    event_id = context['events'][event_name].id
    venue_id = context['venues'][venue_name].id
    context["result"] = runner.invoke(cli, ["bookings", "create", str(event_id), str(venue_id)])


@when(parsers.parse('staff cancel the booking for "{event_name}" twice'))
def cancel_twice(runner, context, event_name):
    booking_id = str(context['bookings'][event_name].id)
    runner.invoke(cli, ["bookings", "cancel", booking_id])
    context["result"] = runner.invoke(cli, ["bookings", "cancel", booking_id])


@when("staff list bookings")
def list_bookings(runner, context):
    context["result"] = runner.invoke(cli, ["bookings", "list"])
