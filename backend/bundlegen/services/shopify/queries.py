"""GraphQL documents for the Admin and Storefront APIs (2024-07)."""

_VARIANT_FIELDS = """
  id
  title
  sku
  price
  selectedOptions { name value }
  inventoryItem { id tracked }
  metafields(first: 10) { nodes { namespace key value } }
"""

FIND_PRODUCTS = f"""
query FindProducts($query: String!, $first: Int!) {{
  products(first: $first, query: $query) {{
    edges {{
      node {{
        id
        title
        handle
        status
        tags
        variants(first: 100) {{ edges {{ node {{ {_VARIANT_FIELDS} }} }} }}
      }}
    }}
  }}
}}
"""

PRODUCTS_PAGE = f"""
query ProductsPage($query: String!, $after: String) {{
  products(first: 100, query: $query, after: $after) {{
    edges {{
      cursor
      node {{
        id
        title
        status
        tags
        variants(first: 20) {{ edges {{ node {{ {_VARIANT_FIELDS} }} }} }}
      }}
    }}
    pageInfo {{ hasNextPage endCursor }}
  }}
}}
"""

PRODUCT_VARIANTS = f"""
query ProductVariants($id: ID!) {{
  product(id: $id) {{
    id
    title
    status
    tags
    variants(first: 100) {{ edges {{ node {{ {_VARIANT_FIELDS} }} }} }}
  }}
}}
"""

PRODUCT_CREATE = """
mutation ProductCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product { id title handle status tags }
    userErrors { field message }
  }
}
"""

VARIANTS_BULK_CREATE = f"""
mutation VariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!, $strategy: ProductVariantsBulkCreateStrategy) {{
  productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: $strategy) {{
    productVariants {{ {_VARIANT_FIELDS} }}
    userErrors {{ field message }}
  }}
}}
"""

VARIANTS_BULK_UPDATE = """
mutation VariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants { id price }
    userErrors { field message }
  }
}
"""

INVENTORY_ACTIVATE = """
mutation InventoryActivate($inventoryItemId: ID!, $locationId: ID!, $available: Int) {
  inventoryActivate(inventoryItemId: $inventoryItemId, locationId: $locationId, available: $available) {
    inventoryLevel { id }
    userErrors { field message }
  }
}
"""

INVENTORY_SET_QUANTITIES = """
mutation InventorySetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup { createdAt reason }
    userErrors { field message }
  }
}
"""

INVENTORY_LEVEL = """
query InventoryLevel($variantId: ID!, $locationId: ID!) {
  productVariant(id: $variantId) {
    id
    inventoryItem {
      id
      tracked
      inventoryLevel(locationId: $locationId) {
        location { id name }
        quantities(names: ["available"]) { name quantity }
      }
    }
  }
}
"""

INVENTORY_LEVELS_ALL = """
query InventoryLevels($variantId: ID!) {
  productVariant(id: $variantId) {
    id
    inventoryItem {
      id
      tracked
      inventoryLevels(first: 50) {
        edges {
          node {
            location { id name }
            quantities(names: ["available"]) { name quantity }
          }
        }
      }
    }
  }
}
"""

VARIANT_COMPONENTS = """
query VariantComponents($id: ID!) {
  productVariant(id: $id) {
    id
    title
    productVariantComponents(first: 50) {
      nodes { id quantity productVariant { id title } }
    }
  }
}
"""

RELATIONSHIP_BULK_UPDATE = """
mutation RelationshipBulkUpdate($input: [ProductVariantRelationshipUpdateInput!]!) {
  productVariantRelationshipBulkUpdate(input: $input) {
    parentProductVariants {
      id
      title
      productVariantComponents(first: 25) {
        nodes { id quantity productVariant { id title } }
      }
    }
    userErrors { code field message }
  }
}
"""

PUBLISHABLE_PUBLISH = """
mutation PublishProduct($id: ID!, $publicationId: ID!) {
  publishablePublish(id: $id, input: { publicationId: $publicationId }) {
    userErrors { field message }
  }
}
"""

FIND_COLLECTION = """
query FindCollection($query: String!) {
  collections(first: 1, query: $query) {
    edges { node { id title handle } }
  }
}
"""

COLLECTION_ADD_PRODUCTS = """
mutation CollectionAddProducts($id: ID!, $productIds: [ID!]!) {
  collectionAddProductsV2(id: $id, productIds: $productIds) {
    job { id }
    userErrors { field message }
  }
}
"""

FIRST_LOCATION = """
query FirstLocation {
  locations(first: 1) {
    edges { node { id name } }
  }
}
"""

SHOP_METAFIELD = """
query ShopMetafield($namespace: String!, $key: String!) {
  shop {
    metafield(namespace: $namespace, key: $key) { type value }
  }
}
"""

# Storefront API: public collection listing (no inventory or price fields needed)
STOREFRONT_COLLECTION_PRODUCTS = """
query CollectionProducts($handle: String!, $cursor: String) {
  collection(handle: $handle) {
    id
    products(first: 100, after: $cursor) {
      edges {
        cursor
        node {
          id
          title
          tags
          variants(first: 20) { edges { node { id title } } }
        }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""
