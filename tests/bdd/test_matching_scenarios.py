from pytest_bdd import scenarios, when, parsers
from gigcrm.cli.main import cli

scenarios("features/matching.feature")


@when(parsers.parse('staff match "{event_name}"'))
def match(runner, context, event_name):
    context["result"] = runner.invoke(cli, ["match", str(context['events'][event_name].id)])


@when("staff ask for recommendations")
def recommend(runner, context):
    context["result"] = runner.invoke(cli, ["recommend"])


@when("staff ask for recommendations and book them")
def recommend_and_book(runner, context):
    context["result"] = runner.invoke(cli, ["recommend", "--book"])
