from django.contrib import admin

from .models import CartItem, Order, OrderItem, PlatformSetting, Product, Report, Review


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'seller', 'price', 'status', 'views', 'interested', 'created_at')
    list_filter = ('status', 'condition', 'category', 'created_at')
    search_fields = ('name', 'description', 'seller__email')
    readonly_fields = ('id', 'views', 'interested', 'created_at', 'updated_at')
    list_editable = ('status',)


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ('user', 'product', 'quantity', 'added_at')
    search_fields = ('user__email', 'product__name')


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'seller', 'product_name', 'quantity', 'price_at_purchase')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'buyer', 'status', 'payment_status', 'total', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'created_at')
    search_fields = ('order_number', 'buyer__email')
    readonly_fields = ('id', 'order_number', 'subtotal', 'service_fee', 'total', 'created_at', 'updated_at')

    inlines = [OrderItemInline]

    fieldsets = (
        ('Order Information', {
            'fields': ('id', 'order_number', 'buyer', 'status', 'payment_status', 'payment_method')
        }),
        ('Pricing', {
            'fields': ('subtotal', 'service_fee', 'total')
        }),
        ('Delivery', {
            'fields': ('delivery_address', 'delivery_city', 'delivery_state', 'delivery_zip')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'paid_at', 'completed_at', 'cancelled_at', 'cancelled_by'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('reviewer', 'seller', 'product', 'rating', 'created_at')
    list_filter = ('rating', 'created_at')
    search_fields = ('reviewer__email', 'seller__email', 'comment')


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('type', 'item_id', 'reported_by', 'status', 'created_at')
    list_filter = ('type', 'status')
    search_fields = ('reason', 'reported_by__email')


@admin.register(PlatformSetting)
class PlatformSettingAdmin(admin.ModelAdmin):
    list_display = ('platform_name', 'commission_rate', 'min_commission', 'require_admin_approval', 'updated_at')

    def has_add_permission(self, request):
        return not PlatformSetting.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
