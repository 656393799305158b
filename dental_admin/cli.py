"""Command-line interface for Dental Plan Administration management"""

import json
from typing import Optional

import click

from dental_admin.config import settings
from dental_admin.enums import display_name
from dental_admin.validation.constraints import check_class_count, check_class_structure, check_effective_date


@click.group()
def cli():
    """Dental Plan Administration CLI"""
    pass


@cli.command()
@click.option('--host', default='0.0.0.0', help='Bind address')
@click.option('--port', '-p', default=8000, type=int, help='Port')
@click.option('--reload', is_flag=True, help='Reload on code changes')
def serve(host: str, port: int, reload: bool):
    """Run the API server"""
    import uvicorn
    uvicorn.run(
        "dental_admin.main:app",
        host=host,
        port=port,
        reload=reload or settings.debug,
        log_level=settings.log_level.lower()
    )


@cli.command()
@click.option('--path', type=click.Path(exists=True, dir_okay=False), help='Catalog JSON file')
def catalog(path: Optional[str]):
    """Print the benefit catalog"""
    from dental_admin.services.catalog import load_catalog

    document = load_catalog(path)
    click.echo(f"Benefit classes ({len(document['benefitClasses'])}):")
    for item in document['benefitClasses']:
        click.echo(f"   {item['id']:<14} {item['name']}")
    click.echo()
    click.echo(f"Benefits ({len(document['benefits'])}):")
    for item in document['benefits']:
        click.echo(f"   {item['id']:<14} {item['name']}")


@cli.command()
@click.argument('file', type=click.File('r'))
def validate(file):
    """Check a class structure JSON document against the structure rules"""
    try:
        document = json.load(file)
    except json.JSONDecodeError as e:
        click.echo(f"❌ Not valid JSON: {e}")
        raise SystemExit(1)

    classes = [
        (str(c.get('id')), c.get('name'), [str(b.get('id') or b.get('code')) for b in c.get('benefits') or []])
        for c in document.get('classes') or []
    ]
    declared = document.get('numberOfClasses', len(classes))
    results = (
        check_effective_date(document.get('effectiveDate'))
        + check_class_count(declared, classes, settings.max_classes)
        + check_class_structure(classes)
    )

    if results:
        click.echo(f"❌ {len(results)} problem(s) found:")
        for result in results:
            click.echo(f"   - {result.message}")
        raise SystemExit(1)

    benefit_count = sum(len(benefit_ids) for _, _, benefit_ids in classes)
    click.echo(f"✅ {document.get('name', file.name)}: {len(classes)} classes, {benefit_count} benefits")


@cli.group()
def structures():
    """Class structure commands"""
    pass


@structures.command('list')
@click.option('--effective-date', help='Exact YYYY-MM-DD match')
@click.option('--market-segment', help='Individual, Large or Small')
@click.option('--product-type', help='PPO, DHMO or POS')
def list_structures(effective_date: Optional[str], market_segment: Optional[str], product_type: Optional[str]):
    """List stored class structures, newest first"""
    from dental_admin.database import Base, SessionLocal, engine
    from dental_admin.models.class_structures import BenefitClassStructure

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        query = db.query(BenefitClassStructure)
        if effective_date:
            query = query.filter(BenefitClassStructure.effective_date == effective_date)
        if market_segment:
            query = query.filter(BenefitClassStructure.market_segment == market_segment)
        if product_type:
            query = query.filter(BenefitClassStructure.product_type == product_type)
        rows = query.order_by(BenefitClassStructure.created_at.desc()).all()

        if not rows:
            click.echo("No class structures found")
            return

        click.echo(f"Found {len(rows)} class structures:")
        click.echo()
        for row in rows:
            click.echo(f"📋 {row.name} ({row.id})")
            click.echo(f"   Effective: {row.effective_date}")
            click.echo(f"   Market: {display_name(row.market_segment)}, Product: {display_name(row.product_type)}")
            click.echo(f"   Classes: {', '.join(c['name'] for c in row.classes or [])}")
            click.echo()
    finally:
        db.close()


if __name__ == '__main__':
    cli()
