"""
AdminPanel message catalog.

Every key MUST carry an "en" text; other languages fall back to it.
Placeholders use str.format names: {count}, {name}.
"""

MESSAGES = {
    # --- Side menu / dashboard tiles ---
    "side_menu.dashboard": {"en": "Dashboard", "fr": "Tableau de bord"},
    "side_menu.role": {"en": "Roles", "fr": "Rôles"},
    "side_menu.product": {"en": "Products", "fr": "Produits"},
    "side_menu.user": {"en": "Users", "fr": "Utilisateurs"},
    "side_menu.brand": {"en": "Brands", "fr": "Marques"},

    # --- Product listing ---
    "product.listing.tableName": {"en": "Products", "fr": "Produits"},
    "product.listing.id": {"en": "ID", "fr": "ID"},
    "product.listing.name": {"en": "Name", "fr": "Nom"},
    "product.listing.status": {"en": "Status", "fr": "Statut"},
    "product.listing.actions": {"en": "Actions", "fr": "Actions"},
    "product.show.title": {"en": "Product details", "fr": "Détails du produit"},
    "product.show.not_found": {"en": "Product not found.", "fr": "Produit introuvable."},
    "product.messages.common_error_message": {
        "en": "Something went wrong. Please try again later.",
        "fr": "Une erreur s'est produite. Veuillez réessayer plus tard.",
    },
    "product.messages.delete_success": {
        "en": "{count} product(s) deleted successfully.",
        "fr": "{count} produit(s) supprimé(s) avec succès.",
    },
    "created_date": {"en": "Created Date", "fr": "Date de création"},

    # --- Tooltips / buttons ---
    "tooltip.view": {"en": "View", "fr": "Voir"},
    "tooltip.edit": {"en": "Edit", "fr": "Modifier"},
    "tooltip.click_delete": {"en": "Click to delete", "fr": "Cliquer pour supprimer"},
    "tooltip.add_product": {"en": "Add New Product", "fr": "Ajouter un produit"},
    "tooltip.export_product": {"en": "Export Product", "fr": "Exporter les produits"},
    "tooltip.bulk_delete_product": {"en": "Bulk Delete Products", "fr": "Supprimer les produits"},
    "common.search": {"en": "Search", "fr": "Rechercher"},
    "common.clear_filters": {"en": "Clear filters", "fr": "Effacer les filtres"},
    "common.no_records": {"en": "No records found", "fr": "Aucun enregistrement"},
    "common.records": {
        "en": "Showing {start} to {end} of {total} results",
        "fr": "Affichage de {start} à {end} sur {total} résultats",
    },
    "common.confirm": {"en": "Confirm", "fr": "Confirmer"},
    "common.cancel": {"en": "Cancel", "fr": "Annuler"},
    "common.delete_confirm": {
        "en": "Delete {count} record(s) from {table}?",
        "fr": "Supprimer {count} enregistrement(s) de {table} ?",
    },

    # --- Bulk delete ---
    "bulk_delete.no_users_selected": {
        "en": "Please select at least one record.",
        "fr": "Veuillez sélectionner au moins un enregistrement.",
    },
    "bulk_delete.failed": {
        "en": "Bulk delete failed. Please try again.",
        "fr": "La suppression groupée a échoué. Veuillez réessayer.",
    },

    # --- Export ---
    "export.started": {
        "en": "Export started. You will be notified when the file is ready.",
        "fr": "Export lancé. Vous serez averti lorsque le fichier sera prêt.",
    },
    "export.no_records": {"en": "There is no data to export.", "fr": "Aucune donnée à exporter."},
    "export.too_many_records": {
        "en": "Too many records to export (maximum {max}).",
        "fr": "Trop d'enregistrements à exporter (maximum {max}).",
    },
    "export.invalid_job": {"en": "This export is not available.", "fr": "Cet export n'est pas disponible."},
    "export.completed": {"en": "Your export {name} is ready.", "fr": "Votre export {name} est prêt."},
    "export.failed": {"en": "The export failed.", "fr": "L'export a échoué."},

    # --- Auth ---
    "auth.forbidden": {"en": "This action is unauthorized.", "fr": "Action non autorisée."},
    "auth.invalid_credentials": {"en": "Invalid username or password.", "fr": "Identifiants invalides."},
    "auth.required": {"en": "Username and password are required.", "fr": "Identifiant et mot de passe requis."},
    "auth.welcome": {"en": "Welcome, {name}!", "fr": "Bienvenue, {name} !"},
}
