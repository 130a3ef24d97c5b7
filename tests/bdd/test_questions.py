from datetime import datetime, timezone
from pytest_bdd import scenarios, given, when, then, parsers
from summitdesk.cli.main import cli
from summitdesk.models import Question, Result

scenarios("features/questions.feature")

_QUESTION = Question(
    id="3f2b8a1e-6c1d-4b57-9a7e-2d4c0f9e8b11", name="Amina",
    question="How do young founders access seed funding?", category="finance",
    status="pending", created_at=datetime(2026, 9, 1, 9, 30, tzinfo=timezone.utc),
)


@given("no questions have been submitted")
def no_questions(mock_workflow):
    mock_workflow.list_records.return_value = Result.ok([])


@given("a pending question about seed funding")
def pending_question(mock_workflow, mock_submissions):
    mock_workflow.list_records.return_value = Result.ok([_QUESTION])
    mock_workflow.transition.side_effect = lambda kind, record_id, status, **kw: Result.ok(
        Question(id=record_id, status=status, is_answered=status == "answered", answered_by=kw["reviewed_by"]),
        "Question status updated successfully",
    )
    mock_submissions.upvote_question.return_value = Result.ok(
        Question(id=_QUESTION.id, upvotes=1, status="reviewed"), "Question upvoted successfully",
    )


@when("the admin lists questions")
def list_questions(runner, context):
    context["result"] = runner.invoke(cli, ["list", "questions"])


@when(parsers.parse('the admin marks the question answered by "{name}"'))
def mark_answered(runner, context, name):
    context["result"] = runner.invoke(cli, ["status", "question", _QUESTION.id, "answered", "--by", name])


@when("the admin upvotes the question")
def upvote(runner, context):
    context["result"] = runner.invoke(cli, ["upvote", _QUESTION.id])


@then(parsers.parse('the answerer recorded is "{name}"'))
def answerer_recorded(mock_workflow, name):
    assert mock_workflow.transition.call_args.kwargs["reviewed_by"] == name
