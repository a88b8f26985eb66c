"""
Run the "Saldo anterior" generator from the command line.

    python scripts/gerar_saldo_anterior.py --company 3 --start 2025-01
    python scripts/gerar_saldo_anterior.py --all --start 2025-01 --months 6 --basis caixa

Uses DATABASE_URL from the environment (or .env), like the API.
"""

import argparse
import logging
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gestao_financeira.core.config import settings
from gestao_financeira.core.periods import current_month, format_month
from gestao_financeira.db.session import SessionLocal, create_db
from gestao_financeira.models.company import Company
from gestao_financeira.services.saldo_anterior import generate_saldo_anterior


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Gera lançamentos de saldo anterior")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--company", type=int, help="id da empresa")
    target.add_argument("--all", action="store_true", help="todas as empresas")
    parser.add_argument("--start", default=format_month(current_month()), help="mês inicial AAAA-MM")
    parser.add_argument("--months", type=int, default=settings.SALDO_ANTERIOR_MONTHS)
    parser.add_argument("--basis", choices=["competencia", "caixa"], default=settings.SALDO_ANTERIOR_BASIS)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
    create_db()
    db = SessionLocal()
    failed = False
    try:
        if args.all:
            company_ids = [c.id for c in db.query(Company.id).order_by(Company.id).all()]
        else:
            company_ids = [args.company]
        for company_id in company_ids:
            result = generate_saldo_anterior(
                db, company_id, args.start, months=args.months, basis=args.basis,
            )
            print(f"empresa {company_id}: {result.message} ({result.created} criados)")
            for m in result.months:
                print(f"  {m.summed_month} -> {m.target_month}: {m.action} {m.balance:.2f}")
            failed = failed or not result.success
    finally:
        db.close()
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
