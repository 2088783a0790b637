import strawberry

from shop_insights.api.graphql.insights.queries import InsightsQuery

@strawberry.type
class Query(InsightsQuery):
    pass

schema = strawberry.Schema(query=Query)
