"""
URL configuration for backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Stock Ledger Admin Panel"
admin.site.site_title = "Stock Ledger Admin Portal"
admin.site.index_title = "Inventory administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.inventory.urls')),
    path('api/v1/', include('backend.reports.urls')),
]
