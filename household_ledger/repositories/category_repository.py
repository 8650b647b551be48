from household_ledger.models.category import Category, CategoryTemplate, CategoryType
from household_ledger.repositories.base import TombstoneRepository

DEFAULT_TEMPLATES = [
    # (name, type, color, icon, sort_order)
    ("식비", CategoryType.EXPENSE, "#FF6B6B", "restaurant", 1),
    ("교통", CategoryType.EXPENSE, "#4ECDC4", "bus", 2),
    ("주거", CategoryType.EXPENSE, "#45B7D1", "home", 3),
    ("생활", CategoryType.EXPENSE, "#96CEB4", "cart", 4),
    ("의료", CategoryType.EXPENSE, "#FFEAA7", "medkit", 5),
    ("기타지출", CategoryType.EXPENSE, "#6B7280", "pricetag", 99),
    ("급여", CategoryType.INCOME, "#3182F6", "cash", 1),
    ("부수입", CategoryType.INCOME, "#00B894", "wallet", 2),
    ("기타수입", CategoryType.INCOME, "#6B7280", "pricetag", 99),
]


class CategoryRepository(TombstoneRepository[Category]):
    """Repository for Category and CategoryTemplate data access"""

    model = Category

    def get_in_ledger(
        self, category_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Category | None:
        """Get category by ID, ensuring it belongs to the ledger"""
        return (
            self.query(include_deleted)
            .filter(Category.id == category_id, Category.ledger_id == ledger_id)
            .first()
        )

    def get_by_ledger(
        self,
        ledger_id: str,
        category_type: CategoryType | None = None,
        include_deleted: bool = False,
    ) -> list[Category]:
        query = self.query(include_deleted).filter(Category.ledger_id == ledger_id)
        if category_type is not None:
            query = query.filter(Category.type == category_type)
        return query.order_by(Category.type, Category.sort_order, Category.name).all()

    def get_templates(self) -> list[CategoryTemplate]:
        """
        Get the shared category templates, seeding the defaults on first use.
        """
        templates = self.db.query(CategoryTemplate).order_by(CategoryTemplate.sort_order).all()
        if templates:
            return templates

        templates = [
            CategoryTemplate(name=name, type=type_, color=color, icon=icon, sort_order=order)
            for name, type_, color, icon, order in DEFAULT_TEMPLATES
        ]
        self.db.add_all(templates)
        self.db.flush()
        return templates

    def get_template(self, template_id: str) -> CategoryTemplate | None:
        return self.db.query(CategoryTemplate).filter(CategoryTemplate.id == template_id).first()

    def copy_templates(self, ledger_id: str) -> list[Category]:
        """Create one category per template in the ledger (without committing)"""
        categories = [
            Category(
                ledger_id=ledger_id,
                template_id=template.id,
                name=template.name,
                type=template.type,
                color=template.color,
                icon=template.icon,
                sort_order=template.sort_order,
            )
            for template in self.get_templates()
        ]
        self.db.add_all(categories)
        self.db.flush()
        return categories
