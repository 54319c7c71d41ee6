# cli.py
"""
Terminal report: fetch a student's public telemetry, score it and print
recommendations. No database; uses the default roadmap.
"""

import asyncio
import sys

from devtrack.core.logging import configure_logging
from devtrack.services.pipeline import PipelineInputs, PipelineResult, run_pipeline
from devtrack.services.telemetry import fetch_platforms
from devtrack.schemas.telemetry import ExternalStats

PLATFORM_NAMES = {"CF": "Codeforces", "LC": "LeetCode", "GH": "GitHub"}


async def collect(handles):
    results = await fetch_platforms(handles)
    snapshots = {p.lower(): r.snapshot for p, r in results.items() if r.snapshot is not None}
    return ExternalStats(**snapshots), results


def print_report(result: PipelineResult, fetch_results=None) -> None:
    p = result.profile

    if fetch_results:
        print("\n📥 Data sources:")
        for platform, r in fetch_results.items():
            name = PLATFORM_NAMES.get(platform, platform)
            if r.snapshot is not None:
                print(f"   ✓ {name}: {r.snapshot.handle}")
            elif r.error is not None and r.error.value != "configuration_missing":
                print(f"   ⚠️  {name}: no data ({r.error.value})")

    print("\n" + "=" * 70)
    print("📊 SKILL PROFILE")
    print("=" * 70)
    print(f"\n🏅 Overall Score: {p.overall_score}/100")
    print(f"   • DSA: {p.dsa_score}/100")
    print(f"   • Development: {p.development_score}/100")
    print(f"   • Consistency: {p.consistency_score}/100")

    print(f"\n✅ Problems Solved: {p.total_problems_solved}")
    print(f"   • Codeforces rating: {p.cf_rating} (max {p.cf_max_rating}, {p.cf_rank})")
    print(f"   • LeetCode: {p.lc_total_solved} (E={p.lc_easy_solved}, M={p.lc_medium_solved}, H={p.lc_hard_solved})")
    print(f"   • GitHub: {p.gh_public_repos} repos, {p.gh_total_stars} stars, "
          f"{p.gh_last_month_commits} commits this month")
    if p.gh_top_languages:
        print(f"   • Languages: {', '.join(p.gh_top_languages)}")

    print("\n🎯 Weak Topics (need improvement):")
    if p.weak_topics:
        for i, topic in enumerate(p.weak_topics, 1):
            stat = result.topic_stats.get(topic)
            detail = f" ({stat.solved}/{stat.attempts} solved)" if stat else ""
            print(f"   {i}. {topic}{detail}")
    else:
        print("   🎉 Great job! No major weaknesses detected.")

    if p.strong_topics:
        print("\n💪 Strong Topics:")
        for topic in p.strong_topics:
            print(f"   • {topic}")

    print("\n📌 Recommendations:")
    for rec in result.recommendations.flatten():
        c = rec.content
        print(f"   [{rec.type}] {c.title} ({c.difficulty}) {c.link}")
    print()


def main() -> int:
    configure_logging("WARNING")

    cf_user = input("Codeforces handle: ").strip()
    lc_user = input("LeetCode username: ").strip()
    gh_user = input("GitHub username: ").strip()

    if not (cf_user or lc_user or gh_user):
        print("❌ Error: You must provide at least one username!")
        return 1

    print("\n🔄 Fetching user data...")
    stats, fetch_results = asyncio.run(collect({"CF": cf_user, "LC": lc_user, "GH": gh_user}))
    result = run_pipeline(PipelineInputs(stats=stats, recommendation_limit=6))
    print_report(result, fetch_results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
