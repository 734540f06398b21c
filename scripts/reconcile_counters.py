#!/usr/bin/env python3
"""
Counter Reconciliation Script

Recomputes jobs.application_count and companies.job_count from the
application and job rows, and fixes any that drifted.
Usage: python scripts/reconcile_counters.py
"""
import sys
sys.path.insert(0, '.')

from app.services.counters import reconcile_counters


def main():
    print("=" * 50)
    print("JOB MARKETPLACE - COUNTER RECONCILIATION")
    print("=" * 50)

    corrected = reconcile_counters()

    print(f"\n[1] Jobs with wrong application_count: {len(corrected['jobs'])}")
    for j in corrected["jobs"]:
        print(f"    job {j['job_id']}: {j['stored']} -> {j['actual']}")

    print(f"\n[2] Companies with wrong job_count: {len(corrected['companies'])}")
    for c in corrected["companies"]:
        print(f"    company {c['company_id']}: {c['stored']} -> {c['actual']}")

    print("\n" + "=" * 50)
    print("Reconciliation complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
