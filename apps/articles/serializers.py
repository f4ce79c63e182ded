"""
Article serializers.
"""

from rest_framework import serializers

from .models import Article


class ArticleListSerializer(serializers.ModelSerializer):
    """Compact serializer for article lists."""

    author_name = serializers.SerializerMethodField()
    tag_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Article
        fields = [
            'id',
            'title',
            'category',
            'status',
            'author',
            'author_name',
            'word_count',
            'tag_count',
            'featured',
            'scheduled_at',
            'published_at',
            'version',
            'updated_at',
        ]

    def get_author_name(self, obj):
        author = obj.author
        return author.get_full_name() or author.email or author.username


class ArticleSerializer(ArticleListSerializer):
    """
    Full article. Status, version and publication fields are read-only;
    they change only through the editorial workflow.
    """

    class Meta(ArticleListSerializer.Meta):
        fields = ArticleListSerializer.Meta.fields + [
            'body',
            'featured_image',
            'excerpt',
            'meta_description',
            'tags',
            'created_at',
        ]
        read_only_fields = [
            'id',
            'status',
            'author',
            'word_count',
            'featured',
            'scheduled_at',
            'published_at',
            'version',
            'created_at',
            'updated_at',
        ]

    def validate_tags(self, value):
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise serializers.ValidationError("Tags must be a list of strings.")
        cleaned = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned

    def validate_category(self, value):
        value = value.strip().lower()
        if not value:
            raise serializers.ValidationError("Category is required.")
        return value


class ArticleUpdateSerializer(ArticleSerializer):
    """Partial author edit, optionally guarded by the version last read."""

    expected_version = serializers.IntegerField(required=False, min_value=0, write_only=True)

    class Meta(ArticleSerializer.Meta):
        fields = ArticleSerializer.Meta.fields + ['expected_version']
