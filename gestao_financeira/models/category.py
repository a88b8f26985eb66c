from sqlalchemy import Column, Integer, String, Enum
from gestao_financeira.db.session import Base
import enum


class CategoryType(str, enum.Enum):
    revenue = "revenue"
    expense = "expense"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(CategoryType), nullable=False, index=True)


DEFAULT_CATEGORIES = {
    CategoryType.revenue: (
        "Vendas",
        "Prestação de serviços",
        "Receitas financeiras",
        "Outras receitas",
    ),
    CategoryType.expense: (
        "Aluguel",
        "Salários e encargos",
        "Fornecedores",
        "Impostos e taxas",
        "Energia, água e telefone",
        "Marketing",
        "Outras despesas",
    ),
}


def seed_categories(db) -> int:
    """Insert the default lookup rows when the table is empty. Returns rows added."""
    if db.query(Category.id).first() is not None:
        return 0
    rows = [
        Category(name=name, type=cat_type)
        for cat_type, names in DEFAULT_CATEGORIES.items()
        for name in names
    ]
    db.add_all(rows)
    db.commit()
    return len(rows)
