"""
Lab catalogue and report layout configuration.

LabTest is the orderable catalogue. Department, PanelDefinition and
PanelTestItem decide how results are grouped and laid out on a report;
SigningRule decides who signs each department; InterpretationTemplate
attaches range-based text to a result value.
"""

from django.db import models


class LabTest(models.Model):
    """An orderable test or panel. Sub-tests point at their panel via parent_test."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    price_in_paise = models.PositiveIntegerField(default=0)
    reference_min = models.FloatField(null=True, blank=True)
    reference_max = models.FloatField(null=True, blank=True)
    reference_unit = models.CharField(max_length=32, blank=True, default='')
    is_panel = models.BooleanField(default=False)
    parent_test = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='sub_tests',
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_labtest'
        ordering = ['name']
        verbose_name = 'Lab Test'
        verbose_name_plural = 'Lab Tests'

    def __str__(self) -> str:
        return f"{self.code} {self.name}"

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)


class Department(models.Model):
    name = models.CharField(max_length=100, unique=True)
    # e.g. "DEPARTMENT OF HAEMATOLOGY"
    report_header_text = models.CharField(max_length=200)
    display_order = models.IntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_department'
        ordering = ['display_order', 'name']
        verbose_name = 'Department'
        verbose_name_plural = 'Departments'

    def __str__(self) -> str:
        return self.name


class PanelDefinition(models.Model):
    """A report section; its layout_type picks the renderer."""

    LAYOUT_STANDARD_TABLE = 'STANDARD_TABLE'
    LAYOUT_CBP = 'CBP'
    LAYOUT_WIDAL = 'WIDAL'
    LAYOUT_INTERPRETATION_SINGLE = 'INTERPRETATION_SINGLE'
    LAYOUT_TEXT_ONLY = 'TEXT_ONLY'

    LAYOUT_CHOICES = [
        (LAYOUT_STANDARD_TABLE, 'Standard table'),
        (LAYOUT_CBP, 'Complete blood picture'),
        (LAYOUT_WIDAL, 'Widal'),
        (LAYOUT_INTERPRETATION_SINGLE, 'Single test with interpretation'),
        (LAYOUT_TEXT_ONLY, 'Text only'),
    ]

    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=200)
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='panels')
    layout_type = models.CharField(max_length=32, choices=LAYOUT_CHOICES, default=LAYOUT_STANDARD_TABLE)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_paneldefinition'
        ordering = ['department__display_order', 'display_order', 'name']
        verbose_name = 'Panel Definition'
        verbose_name_plural = 'Panel Definitions'

    def __str__(self) -> str:
        return f"{self.name} ({self.layout_type})"


class PanelTestItem(models.Model):
    SUB_GROUP_MAIN = 'MAIN'
    SUB_GROUP_DIFFERENTIAL = 'DIFFERENTIAL'
    SUB_GROUP_SMEAR = 'SMEAR'

    SUB_GROUP_CHOICES = [
        (SUB_GROUP_MAIN, 'Main'),
        (SUB_GROUP_DIFFERENTIAL, 'Differential count'),
        (SUB_GROUP_SMEAR, 'Peripheral smear'),
    ]

    panel = models.ForeignKey(PanelDefinition, on_delete=models.CASCADE, related_name='items')
    test = models.ForeignKey(LabTest, on_delete=models.PROTECT, related_name='panel_items')
    display_order = models.IntegerField(default=0)
    method_text = models.CharField(max_length=200, blank=True, default='')
    indent_level = models.PositiveSmallIntegerField(default=0)
    # only meaningful for CBP panels
    sub_group = models.CharField(max_length=16, choices=SUB_GROUP_CHOICES, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lab_paneltestitem'
        ordering = ['panel', 'display_order', 'id']
        verbose_name = 'Panel Test Item'
        verbose_name_plural = 'Panel Test Items'
        constraints = [
            models.UniqueConstraint(fields=['panel', 'test'], name='lab_panel_item_unique'),
        ]

    def __str__(self) -> str:
        return f"{self.panel.name}: {self.test.code}"


class SigningDoctor(models.Model):
    name = models.CharField(max_length=200)
    degrees = models.CharField(max_length=200, blank=True, default='')
    designation = models.CharField(max_length=200, blank=True, default='')
    registration_number = models.CharField(max_length=64, blank=True, default='')
    signature_image_path = models.CharField(max_length=255, blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_signingdoctor'
        ordering = ['name']
        verbose_name = 'Signing Doctor'
        verbose_name_plural = 'Signing Doctors'

    def __str__(self) -> str:
        return self.name


class SigningRule(models.Model):
    """Which doctor signs reports containing a department."""

    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='signing_rules')
    signing_doctor = models.ForeignKey(SigningDoctor, on_delete=models.PROTECT, related_name='signing_rules')
    show_lab_incharge_note = models.BooleanField(default=False)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lab_signingrule'
        ordering = ['display_order', 'id']
        verbose_name = 'Signing Rule'
        verbose_name_plural = 'Signing Rules'
        constraints = [
            models.UniqueConstraint(fields=['department', 'signing_doctor'], name='lab_signing_rule_unique'),
        ]

    def __str__(self) -> str:
        return f"{self.department.name} -> {self.signing_doctor.name}"


class InterpretationTemplate(models.Model):
    """Text shown when min_value <= value < max_value (null bound = open)."""

    test = models.ForeignKey(LabTest, on_delete=models.PROTECT, related_name='interpretations')
    min_value = models.FloatField(null=True, blank=True)
    max_value = models.FloatField(null=True, blank=True)
    interpretation_text = models.TextField()
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_interpretationtemplate'
        ordering = ['test', 'display_order', 'id']
        verbose_name = 'Interpretation Template'
        verbose_name_plural = 'Interpretation Templates'

    def __str__(self) -> str:
        return f"{self.test.code} [{self.min_value}, {self.max_value})"

    def matches(self, value) -> bool:
        if value is None:
            return False
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value >= self.max_value:
            return False
        return True
