"""Fair-lending checks - group parity, disparate impact, bias detection and ECOA inputs"""

import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from credit_engine.domain.models import ComponentKind
from credit_engine.domain.results import (
    AdverseActionNotice,
    BiasDetectionResult,
    ComplianceReport,
    EcoaComplianceCheck,
    FairLendingReport,
    FairnessMetric,
    FairnessTestResult,
    GroupCalibration,
    LoanDecision,
    ScoredApplication,
    Severity,
)
from credit_engine.domain.risk_model import FEATURE_NAMES
from credit_engine.utils.numbers import safe_ratio

logger = logging.getLogger(__name__)

DEMOGRAPHIC_PARITY_THRESHOLD = 0.05
EQUAL_OPPORTUNITY_THRESHOLD = 0.05
# Four-fifths rule
DISPARATE_IMPACT_THRESHOLD = 0.80
CALIBRATION_BINS = 10

OUTCOME_BIAS_SCORE_GAP = 50
OUTCOME_BIAS_AFFECTED_GAP = 30
GEOGRAPHIC_BIAS_RATE_GAP = 0.20
GEOGRAPHIC_BIAS_AFFECTED_GAP = 0.15

APPROVED_DECISIONS = frozenset({LoanDecision.APPROVE, LoanDecision.APPROVE_WITH_CONDITIONS})

PROHIBITED_BASES = (
    "race",
    "color",
    "religion",
    "national_origin",
    "sex",
    "gender",
    "marital_status",
    "age",
)

ECOA_REQUIREMENTS = [
    "Decision must not be based on race, color, religion, national origin, sex, marital status, or age",
    "Adverse action notice must be provided within 30 days",
    "Specific reasons for adverse action must be provided",
    "Applicant must be informed of right to receive credit report",
]

DECISION_INPUTS = FEATURE_NAMES + tuple(kind.value for kind in ComponentKind)

MITIGATION_STRATEGIES = {
    "outcome_bias": [
        "Implement post-processing fairness constraints",
        "Use threshold optimization by group",
        "Consider adversarial debiasing during training",
    ],
    "geographic_bias": [
        "Remove geographic features from model",
        "Implement geographic fairness constraints",
        "Conduct disparate impact analysis by geography",
    ],
}

STANDING_MITIGATIONS = [
    "Regular fairness audits and monitoring",
    "Diverse training data collection",
    "Stakeholder review and validation",
]


def is_approved(item: ScoredApplication) -> bool:
    return item.score.recommendation.decision in APPROVED_DECISIONS


def group_by_attribute(
    scored: Sequence[ScoredApplication], labels: Mapping[str, str]
) -> Dict[str, List[ScoredApplication]]:
    """Bucket applications by the caller's label for their applicant id; unlabelled ones are left out"""
    groups: Dict[str, List[ScoredApplication]] = defaultdict(list)
    for item in scored:
        label = labels.get(item.application.applicant_id)
        if label is not None:
            groups[label].append(item)
    return dict(groups)


def approval_rates(groups: Mapping[str, Sequence[ScoredApplication]]) -> Dict[str, float]:
    return {
        group: safe_ratio(sum(1 for item in items if is_approved(item)), len(items))
        for group, items in groups.items()
    }


def _spread(values: Iterable[float]) -> float:
    values = list(values)
    return max(values) - min(values) if values else 0.0


def check_demographic_parity(rates: Mapping[str, float]) -> FairnessMetric:
    """Largest gap in approval rate between any two groups"""
    difference = _spread(rates.values())
    passed = difference <= DEMOGRAPHIC_PARITY_THRESHOLD
    if passed:
        interpretation = f"Approval rates are similar across groups (max difference: {difference:.2%})"
    else:
        interpretation = (
            f"Approval rates differ by {difference:.2%} across groups "
            f"(threshold: {DEMOGRAPHIC_PARITY_THRESHOLD:.2%})"
        )
    return FairnessMetric(difference, passed, DEMOGRAPHIC_PARITY_THRESHOLD, interpretation)


def check_disparate_impact(rates: Mapping[str, float]) -> FairnessMetric:
    """
    Lowest group approval rate over the highest.

    With no approvals in any group there is nothing to compare, and the
    ratio is 1.0.
    """
    highest = max(rates.values(), default=0.0)
    lowest = min(rates.values(), default=0.0)
    ratio = safe_ratio(lowest, highest, default=1.0)
    passed = ratio >= DISPARATE_IMPACT_THRESHOLD
    if passed:
        interpretation = f"Disparate impact ratio {ratio:.3f} meets 80% rule"
    else:
        interpretation = f"Disparate impact ratio {ratio:.3f} fails 80% rule ({ratio:.1%} < 80%)"
    return FairnessMetric(ratio, passed, DISPARATE_IMPACT_THRESHOLD, interpretation)


def check_equal_opportunity(
    groups: Mapping[str, Sequence[ScoredApplication]], repaid: Mapping[str, bool]
) -> Optional[FairnessMetric]:
    """
    Gap in true positive rate: approvals among borrowers who went on to repay.

    Groups with no known repayers are skipped; returns None when no group has any.
    """
    true_positive_rates = {}
    for group, items in groups.items():
        repayers = [item for item in items if repaid.get(item.application.applicant_id)]
        if repayers:
            true_positive_rates[group] = safe_ratio(sum(1 for item in repayers if is_approved(item)), len(repayers))

    if not true_positive_rates:
        return None

    difference = _spread(true_positive_rates.values())
    passed = difference <= EQUAL_OPPORTUNITY_THRESHOLD
    if passed:
        interpretation = f"True positive rates are similar across groups (max difference: {difference:.2%})"
    else:
        interpretation = f"True positive rates differ by {difference:.2%} across groups"
    return FairnessMetric(difference, passed, EQUAL_OPPORTUNITY_THRESHOLD, interpretation)


def calculate_calibration_error(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Expected calibration error over equal-width probability bins"""
    bins: Dict[int, List[int]] = defaultdict(list)
    for i, prediction in enumerate(predictions):
        bins[min(int(prediction * CALIBRATION_BINS), CALIBRATION_BINS - 1)].append(i)

    error = 0.0
    for indices in bins.values():
        mean_prediction = sum(predictions[i] for i in indices) / len(indices)
        mean_actual = sum(actuals[i] for i in indices) / len(indices)
        error += len(indices) / len(predictions) * abs(mean_prediction - mean_actual)
    return error


def calibration_by_group(
    groups: Mapping[str, Sequence[ScoredApplication]], repaid: Mapping[str, bool]
) -> Dict[str, GroupCalibration]:
    """Predicted PD against observed default, per group; only applications with a known outcome count"""
    calibration = {}
    for group, items in groups.items():
        known = [item for item in items if item.application.applicant_id in repaid]
        if not known:
            continue
        predictions = [item.default_probability for item in known]
        defaults = [0.0 if repaid[item.application.applicant_id] else 1.0 for item in known]
        calibration[group] = GroupCalibration(calculate_calibration_error(predictions, defaults), len(known))
    return calibration


def evaluate_fairness(
    scored: Sequence[ScoredApplication],
    groups: Mapping[str, str],
    repaid: Mapping[str, bool] | None = None,
) -> FairnessTestResult:
    """
    Compare outcomes across the groups named in `groups` (applicant id -> label).

    Demographic parity and disparate impact look only at approvals. Equal
    opportunity and calibration also need `repaid` (applicant id -> whether
    the borrower repaid).
    """
    grouped = group_by_attribute(scored, groups)
    rates = approval_rates(grouped)

    violations: List[str] = []
    recommendations: List[str] = []

    parity = check_demographic_parity(rates)
    if not parity.passed:
        violations.append(f"Demographic parity violation: {parity.interpretation}")
        recommendations.extend(
            [
                "Review model features for potential bias",
                "Consider post-processing adjustments to equalize approval rates",
            ]
        )

    opportunity = check_equal_opportunity(grouped, repaid) if repaid else None
    if opportunity is not None and not opportunity.passed:
        violations.append(f"Equal opportunity violation: {opportunity.interpretation}")
        recommendations.append("Ensure true positive rates are similar across groups")

    impact = check_disparate_impact(rates)
    if not impact.passed:
        violations.append(f"Disparate impact violation: {impact.interpretation}")
        recommendations.extend(
            [
                "URGENT: Model fails 80% rule - immediate review required",
                "Conduct disparate impact analysis by feature",
            ]
        )

    overall_passed = parity.passed and impact.passed and (opportunity is None or opportunity.passed)
    if not overall_passed:
        logger.warning("Fairness checks failed", extra={"step": "fairness", "violations": len(violations)})

    return FairnessTestResult(
        overall_passed=overall_passed,
        group_sizes={group: len(items) for group, items in grouped.items()},
        approval_rates=rates,
        demographic_parity=parity,
        disparate_impact=impact,
        equal_opportunity=opportunity,
        calibration_by_group=calibration_by_group(grouped, repaid) if repaid else {},
        violations=violations,
        recommendations=recommendations,
    )


def _outcome_bias(scored: Sequence[ScoredApplication], groups: Mapping[str, str]) -> List[str]:
    """Groups whose mean score trails the best group, once the spread exceeds the gap"""
    grouped = group_by_attribute(scored, groups)
    means = {
        group: sum(item.score.overall_score for item in items) / len(items) for group, items in grouped.items()
    }
    if _spread(means.values()) <= OUTCOME_BIAS_SCORE_GAP:
        return []
    best = max(means.values())
    return [group for group, mean in means.items() if mean < best - OUTCOME_BIAS_AFFECTED_GAP]


def _geographic_bias(scored: Sequence[ScoredApplication], regions: Mapping[str, str]) -> List[str]:
    rates = approval_rates(group_by_attribute(scored, regions))
    if _spread(rates.values()) <= GEOGRAPHIC_BIAS_RATE_GAP:
        return []
    best = max(rates.values())
    return [region for region, rate in rates.items() if rate < best - GEOGRAPHIC_BIAS_AFFECTED_GAP]


def bias_severity(bias_type_count: int, affected_group_count: int) -> Severity:
    if bias_type_count >= 3 or affected_group_count >= 5:
        return Severity.CRITICAL
    if bias_type_count >= 2 or affected_group_count >= 3:
        return Severity.HIGH
    if bias_type_count >= 1 or affected_group_count >= 2:
        return Severity.MEDIUM
    return Severity.LOW


def detect_bias(
    scored: Sequence[ScoredApplication],
    groups: Mapping[str, str],
    regions: Mapping[str, str] | None = None,
) -> BiasDetectionResult:
    """Score gaps between groups and, when regions are given, approval gaps between regions"""
    bias_types: List[str] = []
    affected: List[str] = []

    outcome_groups = _outcome_bias(scored, groups)
    if outcome_groups:
        bias_types.append("outcome_bias")
        affected.extend(outcome_groups)

    region_groups = _geographic_bias(scored, regions) if regions else []
    if region_groups:
        bias_types.append("geographic_bias")
        affected.extend(region_groups)

    affected = list(dict.fromkeys(affected))
    strategies = [s for bias_type in bias_types for s in MITIGATION_STRATEGIES[bias_type]]

    return BiasDetectionResult(
        bias_detected=bool(bias_types),
        bias_types=bias_types,
        affected_groups=affected,
        severity=bias_severity(len(bias_types), len(affected)),
        mitigation_strategies=strategies + STANDING_MITIGATIONS,
    )


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def check_ecoa_compliance(
    decision_inputs: Iterable[str] = DECISION_INPUTS,
    notice: AdverseActionNotice | None = None,
) -> EcoaComplianceCheck:
    """
    Flag decision inputs named after a prohibited basis, and an adverse action
    notice that gives no specific reasons.

    A basis matches whole underscore-separated words only, so "age" flags
    "applicant_age" but not "average_balance".
    """
    violations = []
    for name in decision_inputs:
        padded = f"_{_normalize(name)}_"
        for basis in PROHIBITED_BASES:
            if f"_{basis}_" in padded:
                violations.append(f"Decision input '{name}' uses prohibited basis: {basis}")

    if notice is not None and not notice.reasons:
        violations.append("Adverse action notice does not state specific reasons")

    return EcoaComplianceCheck(compliant=not violations, violations=violations, requirements=list(ECOA_REQUIREMENTS))


def generate_compliance_report(
    fairness: FairnessTestResult,
    bias: BiasDetectionResult,
    ecoa: EcoaComplianceCheck | None = None,
) -> ComplianceReport:
    issues: List[str] = []
    recommendations: List[str] = []

    if not fairness.overall_passed:
        issues.append("Fairness tests failed - potential fair lending violations")
        recommendations.append("Immediate model review and remediation required")
    if bias.bias_detected:
        issues.append(f"Bias detected: {', '.join(bias.bias_types)}")
        recommendations.extend(bias.mitigation_strategies)
    if ecoa is not None and not ecoa.compliant:
        issues.extend(ecoa.violations)
        recommendations.append("Remove prohibited-basis inputs from the decision process")

    compliant = not issues
    summary = (
        "Model meets all fairness and compliance requirements"
        if compliant
        else f"{len(issues)} compliance issues identified requiring immediate attention"
    )
    return ComplianceReport(compliant=compliant, summary=summary, issues=issues, recommendations=recommendations)


def assess_fair_lending(
    scored: Sequence[ScoredApplication],
    groups: Mapping[str, str],
    repaid: Mapping[str, bool] | None = None,
    regions: Mapping[str, str] | None = None,
) -> FairLendingReport:
    """Fairness tests, bias detection and the ECOA input check, rolled into one report"""
    fairness = evaluate_fairness(scored, groups, repaid)
    bias = detect_bias(scored, groups, regions)
    ecoa = check_ecoa_compliance()
    return FairLendingReport(
        fairness=fairness,
        bias=bias,
        ecoa=ecoa,
        compliance=generate_compliance_report(fairness, bias, ecoa),
    )
