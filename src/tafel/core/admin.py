from django.contrib import admin, messages

from .engine.remote import renumber_stored_positions
from .models import ActivityEvent, Column, Item, Project


class ColumnInline(admin.TabularInline):
    model = Column
    extra = 1
    fields = ["name", "position", "is_ruler"]
    ordering = ["position", "name"]


class ItemInline(admin.TabularInline):
    model = Item
    extra = 0
    fields = ["title", "status", "position"]
    show_change_link = True
    ordering = ["position"]


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["name", "created_at", "column_count", "ruler_column"]
    search_fields = ["name", "description"]
    prepopulated_fields = {"slug": ["name"]}
    readonly_fields = ["created_at", "updated_at"]
    inlines = [ColumnInline]
    actions = ["renumber_positions"]
    fieldsets = [
        (None, {"fields": ["name", "slug", "description"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"]}),
    ]

    def column_count(self, obj):
        return obj.columns.count()

    column_count.short_description = "Columns"

    def ruler_column(self, obj):
        ruler = obj.columns.filter(is_ruler=True).first()
        return ruler.name if ruler else ""

    ruler_column.short_description = "Ruler"

    @admin.action(description="Renumber column and item positions")
    def renumber_positions(self, request, queryset):
        changed = 0
        for project in queryset:
            changes = renumber_stored_positions(project.pk)
            changed += len(changes.column_updates) + len(changes.item_updates)
        self.message_user(
            request,
            f"Renumbered {changed} positions.",
            messages.SUCCESS,
        )


@admin.register(Column)
class ColumnAdmin(admin.ModelAdmin):
    list_display = ["name", "project", "position", "is_ruler", "item_count"]
    list_filter = ["project", "is_ruler"]
    search_fields = ["name", "project__name"]
    inlines = [ItemInline]
    fields = ["project", "name", "position", "is_ruler", "created_at"]
    readonly_fields = ["created_at"]

    def item_count(self, obj):
        return obj.items.count()

    item_count.short_description = "Items"


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ["title", "column", "status", "position", "activity_count"]
    list_filter = ["column__project", "column", "status"]
    search_fields = ["title", "description"]
    readonly_fields = ["created_at", "updated_at"]
    fieldsets = [
        (None, {"fields": ["column", "title", "description", "status", "position"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"]}),
    ]

    def activity_count(self, obj):
        return ActivityEvent.objects.filter(entity_id=obj.pk).count()

    activity_count.short_description = "Activity"


@admin.register(ActivityEvent)
class ActivityEventAdmin(admin.ModelAdmin):
    list_display = ["__str__", "project", "event_type", "automated", "created_at"]
    list_filter = ["event_type", "automated", "project"]
    search_fields = ["entity_id"]
    readonly_fields = ["created_at"]
    fieldsets = [
        (None, {"fields": ["project", "entity_id", "event_type", "automated"]}),
        ("Payload", {"fields": ["payload"]}),
        ("Metadata", {"fields": ["created_at"]}),
    ]
