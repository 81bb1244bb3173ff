# accounting/api/serializers/reports.py

from rest_framework import serializers


class UnpostedDocumentSerializer(serializers.Serializer):
    document_type = serializers.CharField()
    id = serializers.IntegerField()
    number = serializers.CharField()
    date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=18, decimal_places=2)


class PPNMonthSerializer(serializers.Serializer):
    month = serializers.IntegerField()
    input_ppn = serializers.DecimalField(max_digits=18, decimal_places=2)
    output_ppn = serializers.DecimalField(max_digits=18, decimal_places=2)
    net_ppn = serializers.DecimalField(max_digits=18, decimal_places=2)
