import pytest
from unittest.mock import MagicMock, patch
from factdesk.errors import AlreadyFinalized, Conflict, DuplicateSuggestion, Forbidden, NotFound, ValidationError
from factdesk.extensions import db
from factdesk.models.claim import Claim
from factdesk.models.enums import ClaimStatus, Responsibility, VerdictKind
from factdesk.models.suggestion import AISuggestion, AISuggestionRevision
from factdesk.models.verdict import Verdict
from factdesk.services.claim_service import ClaimService
from factdesk.services.notification_service import NotificationService
from factdesk.services.points_service import PointsService
from factdesk.services.suggestion_service import SuggestionService, dispatch_suggestion
from factdesk.services.verdict_service import VerdictService


def status_of(claim_id):
    return db.session.get(Claim, claim_id).status


class FakeGateway:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def suggest(self, text, category='other', source_link=None):
        self.calls.append(text)
        return self.result


@pytest.fixture
def suggestions(db_session):
    return SuggestionService(gateway=FakeGateway(None))


@pytest.fixture
def suggested_claim(suggestions, make_claim):
    claim = make_claim('Half of all teachers quit last year')
    suggestions.record_suggestion(
        claim.id, 'false', 0.92, 'Ministry data shows 4% attrition.',
        sources=['https://education.example/attrition-2024'], model_name='gpt-4.1-mini',
    )
    return claim


class TestRecordSuggestion:
    def test_advances_claim_to_ai_approved(self, suggested_claim, db_session):
        db_session.refresh(suggested_claim)
        assert suggested_claim.status == ClaimStatus.AI_APPROVED
        suggestion = AISuggestion.query.filter_by(claim_id=suggested_claim.id).one()
        assert suggested_claim.ai_suggestion_id == suggestion.id
        assert suggestion.verdict == VerdictKind.FALSE
        assert suggestion.confidence == pytest.approx(0.92)
        assert suggestion.edited_by_human is False

    def test_second_suggestion_rejected(self, suggestions, suggested_claim):
        with pytest.raises(DuplicateSuggestion):
            suggestions.record_suggestion(suggested_claim.id, 'true', 0.5, 'Second opinion')

    @pytest.mark.parametrize('verdict,confidence,explanation', [
        ('probably', 0.5, 'x'),
        ('true', 1.5, 'x'),
        ('true', -0.1, 'x'),
        ('true', '0.5', 'x'),
        ('true', 0.5, ''),
    ])
    def test_invalid_suggestion(self, suggestions, make_claim, verdict, confidence, explanation):
        claim = make_claim()
        with pytest.raises(ValidationError):
            suggestions.record_suggestion(claim.id, verdict, confidence, explanation)
        assert status_of(claim.id) == ClaimStatus.PENDING

    def test_missing_claim(self, suggestions):
        with pytest.raises(NotFound):
            suggestions.record_suggestion(77, 'true', 0.5, 'x')

    def test_no_usable_suggestion_goes_to_human_review(self, suggestions, make_claim):
        claim = make_claim()
        assert suggestions.request_suggestion(claim.id) is None
        assert status_of(claim.id) == ClaimStatus.HUMAN_REVIEW

    def test_request_records_gateway_result(self, make_claim, db_session):
        gateway = FakeGateway({
            'verdict': 'misleading', 'confidence': 0.6, 'explanation': 'Cherry-picked figures.',
            'sources': [], 'model_name': 'gpt-4.1-mini',
        })
        claim = make_claim()
        suggestion = SuggestionService(gateway=gateway).request_suggestion(claim.id)
        assert suggestion.verdict == VerdictKind.MISLEADING
        assert status_of(claim.id) == ClaimStatus.AI_APPROVED
        assert gateway.calls == [claim.text]

    def test_request_skips_non_pending(self, make_claim):
        gateway = FakeGateway(None)
        claim = make_claim(status=ClaimStatus.HUMAN_REVIEW)
        assert SuggestionService(gateway=gateway).request_suggestion(claim.id) is None
        assert gateway.calls == []

    def test_dispatch_runs_in_background(self, app, make_claim):
        claim = make_claim()
        with patch('factdesk.services.suggestion_service.SuggestionService') as service_cls:
            thread = dispatch_suggestion(claim.id, app)
            thread.join(timeout=5)
        service_cls.return_value.request_suggestion.assert_called_once_with(claim.id)


class TestApproveOrEdit:
    def test_untouched_approval_is_ai(self, suggestions, suggested_claim, fact_checker, user, db_session):
        unread_before = NotificationService().get_unread_count(user.id)

        result = suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, approved=True)

        assert result['responsibility'] == 'ai'
        verdict = db_session.get(Verdict, result['verdict_id'])
        assert verdict.is_final is True
        assert verdict.responsibility == Responsibility.AI
        assert verdict.verdict == VerdictKind.FALSE
        assert verdict.ai_suggestion_id == suggested_claim.ai_suggestion_id

        claim = db_session.get(Claim, suggested_claim.id)
        assert claim.status == ClaimStatus.HUMAN_APPROVED
        assert claim.final_verdict_id == verdict.id
        assert claim.assigned_fact_checker_id == fact_checker.id
        assert NotificationService().get_unread_count(user.id) == unread_before + 1
        assert AISuggestionRevision.query.count() == 0

    @pytest.mark.parametrize('edits', [
        {'verdict': 'misleading'},
        {'explanation': 'Attrition was 4%, not 50%.'},
        {'sources': ['https://stats.example/teachers']},
        {'added_sources': ['https://news.example/fact-check']},
    ])
    def test_any_edit_is_org(self, suggestions, suggested_claim, fact_checker, db_session, edits):
        result = suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, edits=edits)
        assert result['responsibility'] == 'org'

        suggestion = AISuggestion.query.filter_by(claim_id=suggested_claim.id).one()
        assert suggestion.edited_by_human is True
        assert suggestion.edited_by_id == fact_checker.id
        assert suggestion.edited_at is not None

    def test_unchanged_value_edit_is_still_org(self, suggestions, suggested_claim, fact_checker):
        result = suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, edits={'verdict': 'false'})
        assert result['responsibility'] == 'org'

    def test_edit_keeps_original_as_revision(self, suggestions, suggested_claim, fact_checker, db_session):
        result = suggestions.approve_or_edit(
            fact_checker.id, suggested_claim.id,
            edits={'verdict': 'misleading', 'added_sources': ['https://news.example/fact-check']},
        )

        revisions = suggestions.get_revisions(suggested_claim.id)
        assert len(revisions) == 1
        assert revisions[0].verdict == VerdictKind.FALSE
        assert revisions[0].sources_json == ['https://education.example/attrition-2024']
        assert revisions[0].replaced_by_id == fact_checker.id

        verdict = db_session.get(Verdict, result['verdict_id'])
        assert verdict.verdict == VerdictKind.MISLEADING
        assert verdict.sources_json == [
            'https://education.example/attrition-2024',
            'https://news.example/fact-check',
        ]

    def test_rejection_without_edits(self, suggestions, suggested_claim, fact_checker):
        with pytest.raises(ValidationError):
            suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, approved=False)

    def test_unknown_edit_field(self, suggestions, suggested_claim, fact_checker):
        with pytest.raises(ValidationError):
            suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, edits={'confidence': 1.0})

    def test_no_suggestion(self, suggestions, make_claim, fact_checker):
        claim = make_claim(status=ClaimStatus.HUMAN_REVIEW)
        with pytest.raises(NotFound):
            suggestions.approve_or_edit(fact_checker.id, claim.id)

    def test_regular_user_cannot_approve(self, suggestions, suggested_claim, other_user):
        with pytest.raises(Forbidden):
            suggestions.approve_or_edit(other_user.id, suggested_claim.id)

    def test_second_approval_already_finalized(self, suggestions, suggested_claim, fact_checker, second_checker):
        suggestions.approve_or_edit(fact_checker.id, suggested_claim.id)
        with pytest.raises(AlreadyFinalized):
            suggestions.approve_or_edit(second_checker.id, suggested_claim.id, edits={'verdict': 'true'})

    def test_race_loser_sees_already_finalized(self, suggestions, suggested_claim, fact_checker,
                                               second_checker, db_session):
        # Both callers pass the entry check; only the in-transaction re-check can stop the loser.
        with patch.object(VerdictService, 'check_not_finalized', MagicMock(return_value=None)):
            first = suggestions.approve_or_edit(
                fact_checker.id, suggested_claim.id, edits={'explanation': 'Winner edit'},
            )
            with pytest.raises(AlreadyFinalized):
                suggestions.approve_or_edit(
                    second_checker.id, suggested_claim.id, edits={'explanation': 'Loser edit'},
                )

        assert Verdict.query.filter_by(claim_id=suggested_claim.id, is_final=True).count() == 1
        suggestion = AISuggestion.query.filter_by(claim_id=suggested_claim.id).one()
        assert suggestion.explanation == 'Winner edit'
        assert suggestion.edited_by_id == fact_checker.id
        assert first['responsibility'] == 'org'

    def test_rejected_claim(self, suggestions, suggested_claim, fact_checker, admin):
        ClaimService().reject_claim(admin.id, suggested_claim.id)
        with pytest.raises(Conflict):
            suggestions.approve_or_edit(fact_checker.id, suggested_claim.id)


class TestFailureRollsBack:
    def test_failure_after_finalization_claim_undoes_everything(self, suggestions, suggested_claim,
                                                                 fact_checker, db_session):
        with patch.object(PointsService, 'credit', side_effect=RuntimeError('ledger write failed')):
            with pytest.raises(RuntimeError):
                suggestions.approve_or_edit(
                    fact_checker.id, suggested_claim.id,
                    edits={'verdict': 'misleading', 'explanation': 'Rewritten'},
                )

        claim = db_session.get(Claim, suggested_claim.id)
        assert claim.status == ClaimStatus.AI_APPROVED
        assert claim.final_verdict_id is None
        assert claim.assigned_fact_checker_id is None
        assert Verdict.query.filter_by(claim_id=claim.id).count() == 0

        suggestion = AISuggestion.query.filter_by(claim_id=claim.id).one()
        assert suggestion.verdict == VerdictKind.FALSE
        assert suggestion.explanation == 'Ministry data shows 4% attrition.'
        assert suggestion.edited_by_human is False
        assert AISuggestionRevision.query.count() == 0

        # and the claim can still be finalized afterwards
        result = suggestions.approve_or_edit(fact_checker.id, claim.id)
        assert result['responsibility'] == 'ai'


class TestNullEdits:
    @pytest.mark.parametrize('edits', [
        {'verdict': None},
        {'explanation': None, 'verdict': 'true'},
        {'added_sources': []},
    ])
    def test_rejected_without_side_effects(self, suggestions, suggested_claim, fact_checker, db_session, edits):
        with pytest.raises(ValidationError):
            suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, edits=edits)
        assert db_session.get(Claim, suggested_claim.id).status == ClaimStatus.AI_APPROVED

    def test_empty_edits_object_is_untouched_approval(self, suggestions, suggested_claim, fact_checker):
        result = suggestions.approve_or_edit(fact_checker.id, suggested_claim.id, edits={})
        assert result['responsibility'] == 'ai'


class FinalizingGateway:
    """Stands in for a slow AI: a fact-checker resolves the claim before it answers."""

    def __init__(self, fact_checker_id, claim_id):
        self.fact_checker_id = fact_checker_id
        self.claim_id = claim_id

    def suggest(self, text, category='other', source_link=None):
        VerdictService().submit_verdict(self.fact_checker_id, self.claim_id, 'true', 'Resolved by hand.')
        return None


class TestLateAIAnswer:
    def test_nothing_usable_after_human_verdict(self, make_claim, fact_checker, db_session):
        claim = make_claim()
        service = SuggestionService(gateway=FinalizingGateway(fact_checker.id, claim.id))

        assert service.request_suggestion(claim.id) is None
        assert status_of(claim.id) == ClaimStatus.HUMAN_APPROVED
        assert Verdict.query.filter_by(claim_id=claim.id, is_final=True).count() == 1
